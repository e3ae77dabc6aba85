"""
Tests for health check endpoints.
"""


async def test_root_endpoint(client):
    """Test the root endpoint returns API info."""
    response = await client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Hitcount"
    assert "version" in data
    assert data["status"] == "running"


async def test_health_check(client):
    """Test the basic health check endpoint."""
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data


async def test_liveness_probe(client):
    """Test the liveness probe endpoint."""
    response = await client.get("/health/live")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "alive"


async def test_readiness_probe(client):
    """Test the readiness probe checks the database and Redis."""
    response = await client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["checks"] == {"database": "connected", "redis": "connected"}


async def test_readiness_without_redis(client, app):
    """Redis is optional; the service stays ready without it."""
    app.state.redis = None
    response = await client.get("/health/ready")

    assert response.json()["checks"]["redis"] == "not_configured"
    assert response.json()["status"] == "ready"


async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["x-request-id"] == "abc-123"
