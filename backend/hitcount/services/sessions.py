"""
Session tracker - cookie-free visitor sessions kept in Redis.

A session is keyed by an HMAC of ``ip|user_agent``; neither value is
stored. Each session remembers which path ids it has already hit, which is
what decides whether a hit counts towards the breakdown tables.
"""
import json
import time
from dataclasses import dataclass
from typing import Optional

from redis.asyncio import Redis

from hitcount.core.config import settings
from hitcount.core.logging import get_logger
from hitcount.core.security import generate_session_id, hash_visitor

logger = get_logger(__name__)

SESSION_KEY_PREFIX = "session:"


@dataclass(frozen=True)
class SessionResult:
    session_id: str
    session_hash: str
    first_visit: bool


def session_key(session_hash: str) -> str:
    return f"{SESSION_KEY_PREFIX}{session_hash}"


class SessionTracker:
    """
    Resolves the session for a hit and whether its path is new to it.

    Every write sets the full TTL again, counted from that write. Reading
    a session without writing to it leaves its expiry untouched.
    """

    def __init__(
        self,
        redis: Optional[Redis],
        ttl_seconds: Optional[int] = None,
        secret: Optional[str] = None,
    ) -> None:
        self.redis = redis
        self.ttl_seconds = ttl_seconds or settings.session_ttl_seconds
        self.secret = secret

    async def resolve(self, ip: str, user_agent: str, path_id: int) -> SessionResult:
        session_hash = hash_visitor(ip, user_agent, secret=self.secret)

        if self.redis is None:
            # Without a store every hit starts a fresh session
            return SessionResult(generate_session_id(), session_hash, first_visit=True)

        key = session_key(session_hash)
        raw = await self.redis.get(key)
        existing = self._decode(raw) if raw else None

        if existing is None:
            record = {
                "id": generate_session_id(),
                "paths_seen": [path_id],
                "created_at": int(time.time() * 1000),
            }
            await self._save(key, record)
            return SessionResult(record["id"], session_hash, first_visit=True)

        first_visit = path_id not in existing["paths_seen"]
        if first_visit:
            existing["paths_seen"].append(path_id)
            await self._save(key, existing)

        return SessionResult(existing["id"], session_hash, first_visit=first_visit)

    async def _save(self, key: str, record: dict) -> None:
        await self.redis.set(key, json.dumps(record), ex=self.ttl_seconds)

    @staticmethod
    def _decode(raw: str | bytes) -> Optional[dict]:
        try:
            record = json.loads(raw)
        except ValueError:
            logger.warning("session_record_corrupt")
            return None
        if not isinstance(record, dict) or not isinstance(record.get("paths_seen"), list):
            logger.warning("session_record_corrupt")
            return None
        record.setdefault("id", generate_session_id())
        return record
