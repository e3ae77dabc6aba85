"""
Services package for the classification and aggregation logic.

Only the pure helpers are re-exported here; the pipeline, queue and
retention modules are imported directly where they are used.
"""
from hitcount.services.periods import DateRange, Granularity, Period, parse_period, percent_change
from hitcount.services.referrers import ParsedRef, extract_campaign, normalize
from hitcount.services.useragent import ParsedUA, classify, detect_bot

__all__ = [
    "classify",
    "detect_bot",
    "ParsedUA",
    "normalize",
    "extract_campaign",
    "ParsedRef",
    "parse_period",
    "percent_change",
    "DateRange",
    "Granularity",
    "Period",
]
