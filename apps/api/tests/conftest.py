"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from path_gtfsrt.clock import MockClock
from path_gtfsrt.main import create_app
from path_gtfsrt.metrics import record_trip_update
from path_gtfsrt.models import Direction, Route, Station
from path_gtfsrt.services.feed import FeedWorker, new_trip_update_feed
from path_gtfsrt.services.sources import get_static_data

from .fixtures.path_fixture import MockSourceClient, source_train


@pytest.fixture
def mock_clock() -> MockClock:
    return MockClock()


@pytest.fixture
def source_client() -> MockSourceClient:
    """Source client with one train at Hoboken and none at 14th Street."""
    return MockSourceClient(
        station_to_trains={
            Station.HOBOKEN: [source_train(Route.HOB_33, Direction.TO_NY, 15, 10)],
            Station.FOURTEENTH_STREET: [],
        }
    )


@pytest.fixture
async def trip_update_feed(
    mock_clock: MockClock, source_client: MockSourceClient
) -> AsyncGenerator[FeedWorker, None]:
    """Started trip update feed; stopped on teardown."""
    static_data = await get_static_data(source_client)
    feed = new_trip_update_feed(
        mock_clock, 5, source_client, static_data, on_update=record_trip_update
    )
    await feed.start()
    yield feed
    await feed.stop()


@pytest.fixture
def app(trip_update_feed: FeedWorker) -> FastAPI:
    """Application with a running trip update feed and no alert feed.

    The lifespan does not run under ASGITransport, so feeds are attached
    to the app state directly.
    """
    application = create_app()
    application.state.trip_update_feed = trip_update_feed
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
