"""
Base repository.
Implements the Repository pattern for data access abstraction.
"""
from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from hitcount.core.database import Base, dialect_insert

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository bound to one model and one session.

    Subclasses should set the `model` class attribute to the SQLAlchemy model.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def insert(self) -> Any:
        """Dialect ``insert`` supporting ``on_conflict_do_*``."""
        return dialect_insert(self.session)
