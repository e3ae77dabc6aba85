"""
Settings repository - site name, retention window and first-hit timestamp.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update

from hitcount.core.config import settings as app_settings
from hitcount.models import Setting, SettingKey
from hitcount.repositories.base import BaseRepository


class SettingsRepository(BaseRepository[Setting]):
    """Key/value access to the settings table."""

    model = Setting

    async def get_value(self, key: str) -> Optional[str]:
        return await self.session.scalar(select(Setting.value).where(Setting.key == key))

    async def set_value(self, key: str, value: Optional[str]) -> None:
        stmt = (
            self.insert(Setting)
            .values(key=key, value=value)
            .on_conflict_do_update(index_elements=["key"], set_={"value": value})
        )
        await self.session.execute(stmt)

    async def get_site_name(self) -> str:
        return await self.get_value(SettingKey.SITE_NAME) or app_settings.site_name

    async def get_retention_days(self) -> int:
        """Retention window in days; 0 means keep everything."""
        value = await self.get_value(SettingKey.DATA_RETENTION_DAYS)
        try:
            return max(int(value), 0) if value is not None else app_settings.data_retention_days
        except ValueError:
            return app_settings.data_retention_days

    async def get_first_hit_at(self) -> Optional[datetime]:
        value = await self.get_value(SettingKey.FIRST_HIT_AT)
        return datetime.fromisoformat(value) if value else None

    async def mark_first_hit(self, when: Optional[datetime] = None) -> bool:
        """
        Record the first-ever hit time.

        Only writes while the stored value is still null, so the first
        recorded timestamp is never overwritten. Returns True if it was set.
        """
        when = when or datetime.now(timezone.utc)
        # Seeded row may be missing on a database created outside init_db
        await self.session.execute(
            self.insert(Setting)
            .values(key=SettingKey.FIRST_HIT_AT, value=None)
            .on_conflict_do_nothing(index_elements=["key"])
        )
        result = await self.session.execute(
            update(Setting)
            .where(Setting.key == SettingKey.FIRST_HIT_AT, Setting.value.is_(None))
            .values(value=when.isoformat())
        )
        return result.rowcount > 0
