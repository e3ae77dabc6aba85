"""
Site settings stored as key/value pairs.
"""
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hitcount.core.database import Base


class SettingKey:
    SITE_NAME = "site_name"
    DATA_RETENTION_DAYS = "data_retention_days"
    FIRST_HIT_AT = "first_hit_at"


class Setting(Base):
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Setting {self.key}={self.value!r}>"
