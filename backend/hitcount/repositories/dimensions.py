"""
Dimension registry - get-or-create resolution of paths, referrers,
browsers and systems to their integer ids.

Resolution looks the key up first and only inserts on a miss. The insert
is ``ON CONFLICT DO NOTHING`` against the table's unique key, so when two
requests race to create the same value the database keeps one row and both
callers read back the same id.
"""
from typing import Any

from sqlalchemy import and_, select, update

from hitcount.models import SENTINEL_ID, Browser, Path, Referrer, RefScheme, System
from hitcount.repositories.base import BaseRepository, ModelType


class DimensionRepository(BaseRepository[ModelType]):
    """Shared get-or-create over a table with a unique natural key."""

    id_name: str
    key_columns: tuple[str, ...]

    async def find_id(self, **key: Any) -> int | None:
        conditions = [getattr(self.model, name) == value for name, value in key.items()]
        stmt = select(getattr(self.model, self.id_name)).where(and_(*conditions))
        return await self.session.scalar(stmt)

    async def get_or_create(self, **values: Any) -> int:
        key = {name: values[name] for name in self.key_columns}

        existing = await self.find_id(**key)
        if existing is not None:
            return existing

        stmt = (
            self.insert(self.model)
            .values(**values)
            .on_conflict_do_nothing(index_elements=list(self.key_columns))
        )
        await self.session.execute(stmt)

        created = await self.find_id(**key)
        if created is None:
            raise RuntimeError(f"{self.model.__tablename__} row vanished after insert")
        return created


class PathRepository(DimensionRepository[Path]):
    model = Path
    id_name = "path_id"
    key_columns = ("path",)

    async def resolve(self, path: str, title: str = "", event: bool = False) -> int:
        """
        Id for ``path``, creating it if needed.

        A non-empty title replaces the stored one when it differs; the
        event flag is only set when the path is first created.
        """
        path_id = await self.get_or_create(path=path, title=title, event=event)
        if title:
            await self.session.execute(
                update(Path)
                .where(Path.path_id == path_id, Path.title != title)
                .values(title=title)
            )
        return path_id


class ReferrerRepository(DimensionRepository[Referrer]):
    model = Referrer
    id_name = "ref_id"
    key_columns = ("ref", "ref_scheme")

    async def resolve(self, ref: str, scheme: RefScheme | str = RefScheme.OTHER) -> int:
        """Id for a normalized referrer; the empty referrer is always the direct row."""
        if not ref:
            return SENTINEL_ID
        return await self.get_or_create(ref=ref, ref_scheme=RefScheme(scheme).value)


class BrowserRepository(DimensionRepository[Browser]):
    model = Browser
    id_name = "browser_id"
    key_columns = ("name", "version")

    async def resolve(self, name: str, version: str = "") -> int:
        if not name:
            return SENTINEL_ID
        return await self.get_or_create(name=name, version=version)


class SystemRepository(DimensionRepository[System]):
    model = System
    id_name = "system_id"
    key_columns = ("name", "version")

    async def resolve(self, name: str, version: str = "") -> int:
        if not name:
            return SENTINEL_ID
        return await self.get_or_create(name=name, version=version)
