"""
Hit pipeline - classify, resolve and aggregate one beacon hit.

Runs detached from the request that delivered the hit: nothing here can
change the response, and every failure ends in a log line.
"""
import asyncio
import math
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from redis.asyncio import Redis

from hitcount.core.database import SessionFactory, async_session_factory, get_db_context
from hitcount.core.logging import get_logger
from hitcount.repositories.dimensions import (
    BrowserRepository,
    PathRepository,
    ReferrerRepository,
    SystemRepository,
)
from hitcount.repositories.settings import SettingsRepository
from hitcount.schemas.hit import HitPayload
from hitcount.services.aggregator import ClassifiedHit, HitAggregator
from hitcount.services.referrers import normalize
from hitcount.services.sessions import SessionTracker
from hitcount.services.useragent import classify

logger = get_logger(__name__)

PATH_TRACKING_PARAMS = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "fbclid",
    "gclid",
    "msclkid",
    "ref",
    "_ga",
)

_LANGUAGE = re.compile(r"^([a-zA-Z]{2,3})(?:-[a-zA-Z]{2})?")

TRUTHY_FLAGS = ("true", "1")

# Widths beyond this are not screens; they would also overflow the column
MAX_WIDTH = 100_000


def clean_path(path: str) -> str:
    """Ensure a leading slash and drop tracking parameters from the query."""
    if not path.startswith("/"):
        path = "/" + path
    base, sep, query = path.partition("?")
    if not sep:
        return path
    # Filter the raw pieces so the rest of the query keeps its exact encoding
    kept = [
        piece
        for piece in query.split("&")
        if piece and piece.partition("=")[0] not in PATH_TRACKING_PARAMS
    ]
    cleaned = "&".join(kept)
    return f"{base}?{cleaned}" if cleaned else base


def bucket_width(width: Optional[int]) -> Optional[int]:
    """Screen width rounded to the nearest 100; None when missing or implausible."""
    if width is None or width <= 0 or width > MAX_WIDTH:
        return None
    return math.floor(width / 100 + 0.5) * 100


def parse_language(accept_language: Optional[str]) -> Optional[str]:
    """Primary language code of an ``Accept-Language`` header."""
    if not accept_language:
        return None
    match = _LANGUAGE.match(accept_language.strip())
    return match.group(1).lower() if match else None


def parse_flag(value: Optional[str]) -> bool:
    return value in TRUTHY_FLAGS


def parse_int(value: Optional[str]) -> Optional[int]:
    """Lenient integer parsing for beacon parameters."""
    if value is None:
        return None
    match = re.match(r"^\s*([+-]?\d+)", value)
    return int(match.group(1)) if match else None


@dataclass(frozen=True)
class Dimensions:
    path_id: int
    ref_id: int
    browser_id: int
    system_id: int


def _single_writer(factory: SessionFactory) -> bool:
    bind = factory.kw.get("bind")
    return bind is not None and bind.dialect.name == "sqlite"


async def resolve_dimensions(payload: HitPayload, factory: SessionFactory) -> Dimensions:
    """
    Resolve the hit's path, referrer, browser and system ids.

    The four lookups are independent and run concurrently, each in its own
    session. SQLite only admits one writer, so there they run one by one.
    """
    ua = classify(payload.user_agent)
    ref = normalize(payload.referrer)
    path = clean_path(payload.path)

    async def resolve(repository: Any, *args: Any) -> int:
        async with get_db_context(factory) as session:
            return await repository(session).resolve(*args)

    lookups: list[Callable[[], Awaitable[int]]] = [
        lambda: resolve(PathRepository, path, payload.title, payload.event),
        lambda: resolve(ReferrerRepository, ref.display, ref.scheme),
        lambda: resolve(BrowserRepository, ua.browser_name, ua.browser_version),
        lambda: resolve(SystemRepository, ua.os_name, ua.os_version),
    ]

    if _single_writer(factory):
        ids = [await lookup() for lookup in lookups]
    else:
        ids = await asyncio.gather(*(lookup() for lookup in lookups))

    return Dimensions(*ids)


async def record_hit(
    payload: HitPayload,
    factory: Optional[SessionFactory] = None,
    redis: Optional[Redis] = None,
    tracker: Optional[SessionTracker] = None,
) -> ClassifiedHit:
    """Run the full pipeline for one hit; errors propagate."""
    factory = factory or async_session_factory
    tracker = tracker or SessionTracker(redis)

    dims = await resolve_dimensions(payload, factory)
    session_info = await tracker.resolve(payload.ip, payload.user_agent, dims.path_id)

    hit = ClassifiedHit(
        path_id=dims.path_id,
        ref_id=dims.ref_id,
        browser_id=dims.browser_id,
        system_id=dims.system_id,
        session=session_info.session_hash,
        first_visit=session_info.first_visit,
        width=bucket_width(payload.width),
        location=payload.location.upper(),
        language=parse_language(payload.accept_language),
        created_at=payload.created_at,
    )

    async with get_db_context(factory) as session:
        await HitAggregator(session).record(hit)

    if hit.first_visit:
        async with get_db_context(factory) as session:
            await SettingsRepository(session).mark_first_hit(hit.created_at)

    return hit


async def process_hit(
    payload: HitPayload,
    factory: Optional[SessionFactory] = None,
    redis: Optional[Redis] = None,
) -> None:
    """Background entry point: record the hit, log and swallow any failure."""
    try:
        hit = await record_hit(payload, factory=factory, redis=redis)
    except Exception as e:
        logger.error(
            "hit_processing_failed",
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return

    logger.info(
        "hit_recorded",
        path_id=hit.path_id,
        ref_id=hit.ref_id,
        first_visit=hit.first_visit,
    )
