"""
Raw hit log - one immutable row per recorded pageview or event.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from hitcount.core.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
HitId = BigInteger().with_variant(Integer, "sqlite")


class Hit(Base):
    """
    Append-only raw event row.

    ``session`` is the keyed visitor hash, never the IP or user agent.
    Rows are only removed by the retention job.
    """

    __tablename__ = "hits"

    hit_id: Mapped[int] = mapped_column(HitId, primary_key=True, autoincrement=True)
    path_id: Mapped[int] = mapped_column(ForeignKey("paths.path_id"), nullable=False)
    ref_id: Mapped[int] = mapped_column(ForeignKey("refs.ref_id"), nullable=False, default=1)
    browser_id: Mapped[int] = mapped_column(
        ForeignKey("browsers.browser_id"), nullable=False, default=1
    )
    system_id: Mapped[int] = mapped_column(
        ForeignKey("systems.system_id"), nullable=False, default=1
    )
    session: Mapped[Optional[str]] = mapped_column(String(64))
    first_visit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    width: Mapped[Optional[int]] = mapped_column(Integer)
    location: Mapped[str] = mapped_column(String(2), nullable=False, default="", server_default="")
    language: Mapped[Optional[str]] = mapped_column(String(3))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_hits_created_at", "created_at"),
        Index("idx_hits_path_id", "path_id"),
    )

    def __repr__(self) -> str:
        return f"<Hit {self.hit_id} path={self.path_id}>"
