"""
SQLAlchemy models package.
All models are imported here for easy access and Alembic discovery.
"""
from hitcount.models.dimensions import SENTINEL_ID, Browser, Path, Referrer, RefScheme, System
from hitcount.models.hit import Hit
from hitcount.models.rollups import (
    HOURS_PER_DAY,
    BrowserStat,
    HitCount,
    HitStat,
    LocationStat,
    RefCount,
    SizeStat,
    SystemStat,
)
from hitcount.models.setting import Setting, SettingKey

__all__ = [
    # Dimensions
    "Path",
    "Referrer",
    "RefScheme",
    "Browser",
    "System",
    "SENTINEL_ID",
    # Raw log
    "Hit",
    # Rollups
    "HitCount",
    "HitStat",
    "RefCount",
    "BrowserStat",
    "SystemStat",
    "LocationStat",
    "SizeStat",
    "HOURS_PER_DAY",
    # Settings
    "Setting",
    "SettingKey",
]
