"""Tests for the feed endpoints and metrics."""

import pytest
from httpx import AsyncClient
from prometheus_client import REGISTRY

from path_gtfsrt.services.feed import FeedWorker

from .fixtures.path_fixture import (
    ROUTE_ID_1,
    STOP_ID_HOBOKEN,
    decode_feed,
    entities_without_ids,
    want_trip_update,
)


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
async def test_index_page(client: AsyncClient) -> None:
    response = await client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "/gtfsrt" in response.text


@pytest.mark.asyncio
async def test_trip_update_feed_returns_snapshot(
    client: AsyncClient, trip_update_feed: FeedWorker
) -> None:
    response = await client.get("/gtfsrt")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/x-protobuf"
    assert response.content == trip_update_feed.get()

    msg = decode_feed(response.content)
    assert entities_without_ids(msg) == [
        want_trip_update(ROUTE_ID_1, 1, STOP_ID_HOBOKEN, 15, 10)
    ]


@pytest.mark.asyncio
async def test_alert_feed_not_enabled(client: AsyncClient) -> None:
    response = await client.get("/port_authority_alerts")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_feed_requests_are_counted(client: AsyncClient) -> None:
    before = _sample(
        "path_train_gtfsrt_feed_num_requests_total", feed="trip_updates", code="200"
    )

    await client.get("/gtfsrt")
    await client.get("/gtfsrt")

    after = _sample(
        "path_train_gtfsrt_feed_num_requests_total", feed="trip_updates", code="200"
    )
    assert after - before == 2


@pytest.mark.asyncio
async def test_update_metrics_recorded(client: AsyncClient) -> None:
    """The trip update feed records per-stop counts on every cycle."""
    assert _sample("path_train_gtfsrt_num_updates_total", feed="trip_updates") >= 1
    assert (
        _sample(
            "path_train_gtfsrt_num_trip_stop_times",
            stop_id=STOP_ID_HOBOKEN,
            direction="NY",
        )
        == 1
    )


@pytest.mark.asyncio
async def test_metrics_endpoint(client: AsyncClient) -> None:
    response = await client.get("/metrics/")

    assert response.status_code == 200
    assert "path_train_gtfsrt_num_updates_total" in response.text
