"""GTFS-Realtime feed generation for PATH trains."""

from path_gtfsrt.services.feed.cycle import CycleResult, CycleRunner
from path_gtfsrt.services.feed.feeds import (
    FEED_PORT_AUTHORITY_ALERTS,
    FEED_TRIP_UPDATES,
    new_port_authority_alert_feed,
    new_trip_update_feed,
)
from path_gtfsrt.services.feed.snapshot import FeedSnapshot, SnapshotStore
from path_gtfsrt.services.feed.worker import FeedWorker, WorkerState

__all__ = [
    "FEED_PORT_AUTHORITY_ALERTS",
    "FEED_TRIP_UPDATES",
    "CycleResult",
    "CycleRunner",
    "FeedSnapshot",
    "FeedWorker",
    "SnapshotStore",
    "WorkerState",
    "new_port_authority_alert_feed",
    "new_trip_update_feed",
]
