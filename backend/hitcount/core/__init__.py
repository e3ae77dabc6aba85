"""
Core package containing configuration, database, redis, security, and logging.
"""
from hitcount.core.config import settings
from hitcount.core.database import Base, DbSession, get_db_context, get_db_session
from hitcount.core.logging import configure_logging, get_logger
from hitcount.core.security import hash_visitor, require_dashboard_token

__all__ = [
    "settings",
    "Base",
    "DbSession",
    "get_db_context",
    "get_db_session",
    "configure_logging",
    "get_logger",
    "hash_visitor",
    "require_dashboard_token",
]
