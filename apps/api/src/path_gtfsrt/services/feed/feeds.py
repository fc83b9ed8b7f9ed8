"""Constructors for the trip update and alert feeds."""

from __future__ import annotations

from typing import Optional

from path_gtfsrt.clock import Clock
from path_gtfsrt.models import Incident, StaticData, Station, Train
from path_gtfsrt.services.feed.alerts import build_alert_entities
from path_gtfsrt.services.feed.cycle import CycleRunner, UpdateCallback
from path_gtfsrt.services.feed.trip_updates import build_trip_update_entities
from path_gtfsrt.services.feed.worker import FeedWorker
from path_gtfsrt.services.sources.client import IncidentClient, SourceClient

FEED_TRIP_UPDATES = "trip_updates"
FEED_PORT_AUTHORITY_ALERTS = "port_authority_alerts"

# The alert feed has a single source key
INCIDENTS_KEY = "incidents"

DEFAULT_TIMEOUT_SEC = 5.0


def new_trip_update_feed(
    clock: Clock,
    period_sec: float,
    client: SourceClient,
    static_data: StaticData,
    on_update: Optional[UpdateCallback] = None,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
) -> FeedWorker:
    """Trip update feed querying every mapped station once per cycle."""

    def build(trains_by_station: dict[Station, list[Train]]):
        return build_trip_update_entities(static_data, trains_by_station)

    runner: CycleRunner[Station, Train] = CycleRunner(
        feed_type=FEED_TRIP_UPDATES,
        keys=static_data.stations,
        fetch=client.get_trains_at_station,
        build=build,
        clock=clock,
        timeout_sec=timeout_sec,
        on_update=on_update,
    )
    return FeedWorker(runner, clock, period_sec)


def new_port_authority_alert_feed(
    clock: Clock,
    period_sec: float,
    client: IncidentClient,
    static_data: StaticData,
    on_update: Optional[UpdateCallback] = None,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
) -> FeedWorker:
    """Alert feed built from the Port Authority incident list."""

    async def fetch(_key: str) -> list[Incident]:
        return await client.get_incidents()

    def build(incidents_by_key: dict[str, list[Incident]]):
        return build_alert_entities(static_data, incidents_by_key.get(INCIDENTS_KEY, []))

    runner: CycleRunner[str, Incident] = CycleRunner(
        feed_type=FEED_PORT_AUTHORITY_ALERTS,
        keys=[INCIDENTS_KEY],
        fetch=fetch,
        build=build,
        clock=clock,
        timeout_sec=timeout_sec,
        on_update=on_update,
    )
    return FeedWorker(runner, clock, period_sec)
