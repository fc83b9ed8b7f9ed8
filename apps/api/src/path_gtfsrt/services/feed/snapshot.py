"""GTFS-RT message assembly and the published snapshot holder."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from google.transit import gtfs_realtime_pb2

from path_gtfsrt.clock import EPOCH

GTFS_REALTIME_VERSION = "0.2"


def build_feed_message(
    entities: Iterable[gtfs_realtime_pb2.FeedEntity],
    generated_at: datetime,
) -> gtfs_realtime_pb2.FeedMessage:
    """Wrap entities in a full-dataset FeedMessage stamped at ``generated_at``."""
    msg = gtfs_realtime_pb2.FeedMessage()
    msg.header.gtfs_realtime_version = GTFS_REALTIME_VERSION
    msg.header.incrementality = gtfs_realtime_pb2.FeedHeader.FULL_DATASET
    msg.header.timestamp = int(generated_at.timestamp())
    msg.entity.extend(entities)
    return msg


@dataclass(frozen=True)
class FeedSnapshot:
    data: bytes
    generated_at: datetime


class SnapshotStore:
    """Holds the most recently published serialized feed.

    ``publish`` and ``get`` may be called from different threads; a reader
    always gets one complete snapshot. Before the first publish the store
    serves a header-only message.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = FeedSnapshot(
            data=build_feed_message([], EPOCH).SerializeToString(),
            generated_at=EPOCH,
        )
        self._published = False

    @property
    def has_published(self) -> bool:
        with self._lock:
            return self._published

    def publish(self, data: bytes, generated_at: datetime) -> None:
        snapshot = FeedSnapshot(data=data, generated_at=generated_at)
        with self._lock:
            self._snapshot = snapshot
            self._published = True

    def snapshot(self) -> FeedSnapshot:
        with self._lock:
            return self._snapshot

    def get(self) -> bytes:
        return self.snapshot().data
