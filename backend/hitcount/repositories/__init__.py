"""
Repository package for data access layer.
"""
from hitcount.repositories.base import BaseRepository
from hitcount.repositories.dimensions import (
    BrowserRepository,
    PathRepository,
    ReferrerRepository,
    SystemRepository,
)
from hitcount.repositories.settings import SettingsRepository
from hitcount.repositories.stats import StatsRepository

__all__ = [
    "BaseRepository",
    "PathRepository",
    "ReferrerRepository",
    "BrowserRepository",
    "SystemRepository",
    "SettingsRepository",
    "StatsRepository",
]
