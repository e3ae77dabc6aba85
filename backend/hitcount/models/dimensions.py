"""
Dimension models - small integer identities for paths, referrers, browsers and systems.

Referrers, browsers and systems reserve id 1 as the "direct/unknown" sentinel;
those rows are seeded before first use and never reassigned.
"""
from enum import Enum

from sqlalchemy import Boolean, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hitcount.core.database import Base

SENTINEL_ID = 1


class RefScheme(str, Enum):
    """Coarse classification of where a referrer came from."""

    HTTP = "h"
    CAMPAIGN = "c"
    GENERATED = "g"
    OTHER = "o"


class Path(Base):
    """A page path or an event pseudo-path."""

    __tablename__ = "paths"

    path_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    path: Mapped[str] = mapped_column(String(2048), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    event: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Path {self.path_id} {self.path}>"


class Referrer(Base):
    """Normalized referrer display string and its scheme."""

    __tablename__ = "refs"

    ref_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ref: Mapped[str] = mapped_column(Text, nullable=False)
    ref_scheme: Mapped[str] = mapped_column(
        String(1),
        nullable=False,
        default=RefScheme.OTHER.value,
        server_default=RefScheme.OTHER.value,
    )

    __table_args__ = (UniqueConstraint("ref", "ref_scheme", name="uq_refs_ref_scheme"),)

    def __repr__(self) -> str:
        return f"<Referrer {self.ref_id} {self.ref_scheme}:{self.ref}>"


class Browser(Base):
    __tablename__ = "browsers"

    browser_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, default="", server_default="")
    version: Mapped[str] = mapped_column(String(50), nullable=False, default="", server_default="")

    __table_args__ = (UniqueConstraint("name", "version", name="uq_browsers_name_version"),)

    def __repr__(self) -> str:
        return f"<Browser {self.browser_id} {self.name} {self.version}>"


class System(Base):
    """Operating system."""

    __tablename__ = "systems"

    system_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, default="", server_default="")
    version: Mapped[str] = mapped_column(String(50), nullable=False, default="", server_default="")

    __table_args__ = (UniqueConstraint("name", "version", name="uq_systems_name_version"),)

    def __repr__(self) -> str:
        return f"<System {self.system_id} {self.name} {self.version}>"
