"""Tests for health endpoint."""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from path_gtfsrt.clock import MockClock
from path_gtfsrt.main import create_app
from path_gtfsrt.models import Station
from path_gtfsrt.services.feed import FeedWorker

from .fixtures.path_fixture import MockSourceClient


@pytest.mark.asyncio
async def test_health_endpoint_returns_200(client: AsyncClient) -> None:
    """Test that health endpoint returns 200 with expected fields."""
    response = await client.get("/health")

    assert response.status_code == 200

    data = response.json()
    assert data["service"] == "PATH Train GTFS Realtime"
    assert data["status"] == "healthy"
    assert "version" in data
    assert "environment" in data
    assert "timestamp" in data
    assert data["issues"] == []

    feeds = data["feeds"]
    assert len(feeds) == 1
    assert feeds[0]["feed_type"] == "trip_updates"
    assert feeds[0]["running"] is True
    assert feeds[0]["cycle_count"] == 1
    assert feeds[0]["last_entity_count"] == 1


@pytest.mark.asyncio
async def test_health_endpoint_has_request_id_header(client: AsyncClient) -> None:
    """Test that health endpoint response includes X-Request-ID header."""
    response = await client.get("/health")

    assert "X-Request-ID" in response.headers
    assert len(response.headers["X-Request-ID"]) > 0


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient) -> None:
    response = await client.get("/health", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_health_degraded_when_sources_fail(
    client: AsyncClient,
    mock_clock: MockClock,
    source_client: MockSourceClient,
    trip_update_feed: FeedWorker,
) -> None:
    """Stale sources degrade the service without failing it."""
    del source_client.station_to_trains[Station.FOURTEENTH_STREET]
    await mock_clock.advance(5)
    for _ in range(100):
        if trip_update_feed.cycle_count == 2:
            break
        await asyncio.sleep(0)

    data = (await client.get("/health")).json()

    assert trip_update_feed.cycle_count == 2
    assert data["status"] == "degraded"
    assert len(data["issues"]) == 1
    assert data["feeds"][0]["last_error_count"] == 1


@pytest.mark.asyncio
async def test_health_unhealthy_when_worker_stopped(
    client: AsyncClient, trip_update_feed: FeedWorker
) -> None:
    await trip_update_feed.stop()

    data = (await client.get("/health")).json()

    assert data["status"] == "unhealthy"
    assert data["feeds"][0]["running"] is False
    assert "not running" in data["issues"][0]


@pytest.mark.asyncio
async def test_health_unhealthy_without_feeds() -> None:
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        data = (await ac.get("/health")).json()

    assert data["status"] == "unhealthy"
    assert data["feeds"] == []
