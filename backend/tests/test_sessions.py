"""
Tests for cookie-free session tracking.
"""
import json

from hitcount.core.security import hash_visitor
from hitcount.services.sessions import SessionTracker, session_key
from tests.conftest import FIREFOX_UA

IP = "198.51.100.4"


class TestSessionTracker:
    async def test_first_visit_per_path(self, fake_redis):
        tracker = SessionTracker(fake_redis)
        a, b = 10, 20

        results = [await tracker.resolve(IP, FIREFOX_UA, path) for path in (a, a, b, a)]

        assert [r.first_visit for r in results] == [True, False, True, False]
        assert len({r.session_id for r in results}) == 1
        assert len({r.session_hash for r in results}) == 1

    async def test_raw_ip_is_never_stored(self, fake_redis):
        result = await SessionTracker(fake_redis).resolve(IP, FIREFOX_UA, 1)

        assert IP not in result.session_hash
        (key,) = fake_redis.store
        assert IP not in key
        assert IP not in fake_redis.store[key]
        assert key == session_key(result.session_hash)

    async def test_every_write_sets_the_full_ttl(self, fake_redis):
        tracker = SessionTracker(fake_redis, ttl_seconds=600)
        await tracker.resolve(IP, FIREFOX_UA, 1)
        await tracker.resolve(IP, FIREFOX_UA, 2)

        assert fake_redis.set_calls == 2
        assert set(fake_redis.ttls.values()) == {600}

    async def test_repeat_visit_does_not_write(self, fake_redis):
        tracker = SessionTracker(fake_redis)
        await tracker.resolve(IP, FIREFOX_UA, 1)
        await tracker.resolve(IP, FIREFOX_UA, 1)
        assert fake_redis.set_calls == 1

    async def test_different_visitors_get_different_sessions(self, fake_redis):
        tracker = SessionTracker(fake_redis)
        first = await tracker.resolve(IP, FIREFOX_UA, 1)
        second = await tracker.resolve("198.51.100.5", FIREFOX_UA, 1)

        assert first.session_hash != second.session_hash
        assert second.first_visit is True

    async def test_corrupt_record_starts_fresh(self, fake_redis):
        session_hash = hash_visitor(IP, FIREFOX_UA)
        fake_redis.store[session_key(session_hash)] = "{not json"

        result = await SessionTracker(fake_redis).resolve(IP, FIREFOX_UA, 1)

        assert result.first_visit is True
        record = json.loads(fake_redis.store[session_key(session_hash)])
        assert record["paths_seen"] == [1]

    async def test_without_redis_every_hit_is_first(self):
        tracker = SessionTracker(None)
        results = [await tracker.resolve(IP, FIREFOX_UA, 1) for _ in range(3)]
        assert all(r.first_visit for r in results)

    async def test_hash_depends_on_secret(self):
        assert hash_visitor(IP, FIREFOX_UA, secret="a" * 32) != hash_visitor(
            IP, FIREFOX_UA, secret="b" * 32
        )
