"""Tests for feed message assembly and the snapshot store."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from google.transit import gtfs_realtime_pb2

from path_gtfsrt.models import Direction, Route, Station
from path_gtfsrt.services.feed.alerts import build_alert_entities
from path_gtfsrt.services.feed.snapshot import SnapshotStore, build_feed_message
from path_gtfsrt.services.feed.trip_updates import build_trip_update_entities

from .fixtures.path_fixture import build_static_data, decode_feed, incident, source_train


def _at(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class TestBuildFeedMessage:
    def test_header(self) -> None:
        msg = build_feed_message([], _at(1700000000))

        assert msg.header.gtfs_realtime_version == "0.2"
        assert msg.header.incrementality == gtfs_realtime_pb2.FeedHeader.FULL_DATASET
        assert msg.header.timestamp == 1700000000
        assert len(msg.entity) == 0

    def test_serialize_and_decode_is_lossless(self) -> None:
        static_data = build_static_data()
        entities = build_trip_update_entities(
            static_data,
            {Station.HOBOKEN: [source_train(Route.HOB_33, Direction.TO_NY, 15, 10)]},
        )
        entities += build_alert_entities(
            static_data, [incident(Station=["14S"], Status=["delayed"])]
        )
        msg = build_feed_message(entities, _at(1700000000))

        decoded = decode_feed(msg.SerializeToString())

        assert decoded == msg
        assert decoded.entity[0].HasField("trip_update")
        assert not decoded.entity[0].HasField("alert")
        assert decoded.entity[1].HasField("alert")
        assert not decoded.entity[1].HasField("trip_update")


class TestSnapshotStore:
    def test_default_snapshot_is_well_formed(self) -> None:
        store = SnapshotStore()

        msg = decode_feed(store.get())

        assert not store.has_published
        assert msg.header.gtfs_realtime_version == "0.2"
        assert msg.header.incrementality == gtfs_realtime_pb2.FeedHeader.FULL_DATASET
        assert len(msg.entity) == 0

    def test_publish_replaces_snapshot(self) -> None:
        store = SnapshotStore()
        data = build_feed_message([], _at(42)).SerializeToString()

        store.publish(data, _at(42))

        assert store.has_published
        assert store.get() == data
        assert store.snapshot().generated_at == _at(42)

    def test_concurrent_reads_see_complete_snapshots(self) -> None:
        store = SnapshotStore()
        static_data = build_static_data()
        published: set[bytes] = {store.get()}
        payloads = []
        for i in range(1, 51):
            entities = build_alert_entities(
                static_data, [incident(f"header {i}", "x" * i) for _ in range(i % 5 + 1)]
            )
            payloads.append((build_feed_message(entities, _at(i)).SerializeToString(), _at(i)))
        published.update(data for data, _ in payloads)

        seen: list[bytes] = []
        stop = threading.Event()

        def reader() -> None:
            while not stop.is_set():
                seen.append(store.get())

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for thread in readers:
            thread.start()
        for data, generated_at in payloads:
            store.publish(data, generated_at)
        stop.set()
        for thread in readers:
            thread.join()

        assert seen
        assert all(data in published for data in seen)
        assert store.get() == payloads[-1][0]
