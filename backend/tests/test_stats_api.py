"""
Tests for the dashboard read API.
"""
from datetime import datetime, timedelta, timezone

import pytest

from hitcount.core.config import settings
from hitcount.services.pipeline import record_hit
from hitcount.services.sessions import SessionTracker


@pytest.fixture
async def recorded(session_factory, fake_redis, make_payload):
    """Three hits on two pages, recorded just now."""
    now = datetime.now(timezone.utc)
    tracker = SessionTracker(fake_redis)
    for path, ip in (("/", "203.0.113.1"), ("/", "203.0.113.2"), ("/docs", "203.0.113.1")):
        await record_hit(
            make_payload(path, ip=ip, created_at=now, referrer="https://duckduckgo.com/"),
            factory=session_factory,
            tracker=tracker,
        )


class TestStatsApi:
    async def test_summary(self, client, recorded):
        response = await client.get("/api/stats/summary", params={"period": "day"})

        assert response.status_code == 200
        data = response.json()
        assert data["siteName"] == settings.site_name
        assert data["period"]["name"] == "day"
        assert data["period"]["granularity"] == "hour"
        assert data["totals"]["totalHits"] == 3
        assert data["totals"]["totalVisitors"] == 3
        assert data["totals"]["totalHitsChange"] is None
        assert [p["path"] for p in data["pages"]["pages"]] == ["/", "/docs"]
        assert data["pages"]["hasMore"] is False
        assert data["refs"] == [{"ref": "DuckDuckGo", "refScheme": "h", "total": 3}]
        assert data["browsers"][0]["name"] == "Firefox"
        assert sum(point["count"] for point in data["timeSeries"]) == 3

    async def test_pages_limit_and_filter(self, client, recorded):
        response = await client.get("/api/stats/pages", params={"period": "day", "limit": 1})
        data = response.json()
        assert len(data["pages"]) == 1
        assert data["hasMore"] is True
        assert data["totalCount"] == 2

        response = await client.get("/api/stats/pages", params={"period": "day", "filter": "doc"})
        assert [p["path"] for p in response.json()["pages"]] == ["/docs"]

    async def test_hits_with_explicit_range(self, client, recorded):
        now = datetime.now(timezone.utc)
        response = await client.get(
            "/api/stats/hits",
            params={
                "start": (now - timedelta(hours=2)).isoformat(),
                "end": (now + timedelta(hours=1)).isoformat(),
            },
        )
        assert response.status_code == 200
        assert response.json()["total"] == 3

    async def test_custom_dates(self, client, recorded):
        today = datetime.now(timezone.utc).date()
        response = await client.get(
            "/api/stats/totals",
            params={"period-start": today.isoformat(), "period-end": today.isoformat()},
        )
        assert response.json()["totalHits"] == 3

    async def test_inverted_dates_are_rejected(self, client):
        response = await client.get(
            "/api/stats/totals",
            params={"period-start": "2026-02-02", "period-end": "2026-02-01"},
        )
        assert response.status_code == 422

    async def test_unknown_period_is_rejected(self, client):
        response = await client.get("/api/stats/hits", params={"period": "fortnight"})
        assert response.status_code == 422

    @pytest.mark.parametrize("endpoint", ["refs", "browsers", "systems", "locations", "sizes"])
    async def test_breakdown_endpoints(self, client, recorded, endpoint):
        response = await client.get(f"/api/stats/{endpoint}", params={"period": "day"})
        assert response.status_code == 200
        assert isinstance(response.json(), list)

    async def test_token_is_required_when_configured(self, client, monkeypatch):
        monkeypatch.setattr(settings, "dashboard_token", "s3cret")

        response = await client.get("/api/stats/totals")
        assert response.status_code == 401

        response = await client.get(
            "/api/stats/totals", headers={"Authorization": "Bearer s3cret"}
        )
        assert response.status_code == 200
