"""Prometheus metrics for the feed workers and the HTTP endpoints."""

from __future__ import annotations

from google.transit import gtfs_realtime_pb2
from prometheus_client import Counter, Gauge

from path_gtfsrt.services.feed.feeds import FEED_PORT_AUTHORITY_ALERTS, FEED_TRIP_UPDATES

num_updates_counter = Counter(
    "path_train_gtfsrt_num_updates",
    "Number of completed updates",
    ["feed"],
)

num_source_errors_counter = Counter(
    "path_train_gtfsrt_num_source_api_errors",
    "Number of errors when retrieving realtime data from the source API",
    ["feed"],
)

last_update_gauge = Gauge(
    "path_train_gtfsrt_last_update",
    "Time of the last completed update",
    ["feed"],
)

num_trip_stop_times_gauge = Gauge(
    "path_train_gtfsrt_num_trip_stop_times",
    "Number of trip stop times per station and direction",
    ["stop_id", "direction"],
)

num_alerts_gauge = Gauge(
    "path_train_gtfsrt_num_alerts",
    "Number of alerts in the latest alert feed",
)

feed_requests_counter = Counter(
    "path_train_gtfsrt_feed_num_requests",
    "Number of times a GTFS-RT feed has been requested",
    ["feed", "code"],
)


def _record_update(feed: str, errors: list[Exception]) -> None:
    num_updates_counter.labels(feed=feed).inc()
    num_source_errors_counter.labels(feed=feed).inc(len(errors))
    last_update_gauge.labels(feed=feed).set_to_current_time()


def record_trip_update(msg: gtfs_realtime_pb2.FeedMessage, errors: list[Exception]) -> None:
    """Update callback for the trip update feed."""
    num_trip_stop_times_gauge.clear()
    for entity in msg.entity:
        direction = "NJ" if entity.trip_update.trip.direction_id == 0 else "NY"
        for stop_time_update in entity.trip_update.stop_time_update:
            num_trip_stop_times_gauge.labels(
                stop_id=stop_time_update.stop_id, direction=direction
            ).inc()
    _record_update(FEED_TRIP_UPDATES, errors)


def record_alert_update(msg: gtfs_realtime_pb2.FeedMessage, errors: list[Exception]) -> None:
    """Update callback for the Port Authority alert feed."""
    num_alerts_gauge.set(len(msg.entity))
    _record_update(FEED_PORT_AUTHORITY_ALERTS, errors)
