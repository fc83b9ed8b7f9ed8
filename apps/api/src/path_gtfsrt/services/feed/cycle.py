"""One fetch, merge, transform and publish pass for a feed."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Generic, Hashable, Optional, Sequence, TypeVar

from google.transit import gtfs_realtime_pb2

from path_gtfsrt.clock import Clock
from path_gtfsrt.logging import get_logger
from path_gtfsrt.services.feed.cache import SourceCache
from path_gtfsrt.services.feed.snapshot import SnapshotStore, build_feed_message
from path_gtfsrt.services.sources.client import SourceFetchError

logger = get_logger(__name__)

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")

FetchFn = Callable[[K], Awaitable[Sequence[R]]]
BuildFn = Callable[[dict[K, list[R]]], list[gtfs_realtime_pb2.FeedEntity]]
UpdateCallback = Callable[[gtfs_realtime_pb2.FeedMessage, list[Exception]], None]


@dataclass
class CycleResult:
    """Outcome of a single cycle."""

    cycle_id: str
    message: gtfs_realtime_pb2.FeedMessage
    generated_at: datetime
    errors: list[Exception] = field(default_factory=list)
    stale_keys: list[Hashable] = field(default_factory=list)

    @property
    def entity_count(self) -> int:
        return len(self.message.entity)


class CycleRunner(Generic[K, R]):
    """Runs refresh cycles for one feed type.

    Every source key is queried concurrently with a timeout. A key whose
    query fails contributes its records from the last successful query
    instead (nothing if it never succeeded) and adds one error to the cycle.
    The cycle always publishes unless building the message itself fails.
    """

    def __init__(
        self,
        feed_type: str,
        keys: Sequence[K],
        fetch: FetchFn,
        build: BuildFn,
        clock: Clock,
        timeout_sec: float,
        store: SnapshotStore | None = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> None:
        self.feed_type = feed_type
        self.keys = list(keys)
        self.store = store or SnapshotStore()
        self._fetch = fetch
        self._build = build
        self._clock = clock
        self._timeout_sec = timeout_sec
        self._on_update = on_update
        self._cache: SourceCache[K, R] = SourceCache()
        self._last_generated_at: datetime | None = None

    @property
    def cache(self) -> SourceCache[K, R]:
        return self._cache

    async def run_once(self) -> CycleResult:
        cycle_id = str(uuid.uuid4())[:8]
        outcomes = await asyncio.gather(
            *(self._fetch_key(key, cycle_id) for key in self.keys)
        )

        records_by_key: dict[K, list[R]] = {}
        errors: list[Exception] = []
        stale_keys: list[Hashable] = []
        for key, (records, error) in zip(self.keys, outcomes):
            records_by_key[key] = records
            if error is not None:
                errors.append(error)
                stale_keys.append(key)

        entities = self._build(records_by_key)

        generated_at = self._clock.now()
        if self._last_generated_at is not None and generated_at < self._last_generated_at:
            generated_at = self._last_generated_at
        message = build_feed_message(entities, generated_at)
        self.store.publish(message.SerializeToString(), generated_at)
        self._last_generated_at = generated_at

        logger.info(
            "Feed cycle complete",
            feed_type=self.feed_type,
            cycle_id=cycle_id,
            entity_count=len(message.entity),
            error_count=len(errors),
        )
        self._notify(message, errors)

        return CycleResult(
            cycle_id=cycle_id,
            message=message,
            generated_at=generated_at,
            errors=errors,
            stale_keys=stale_keys,
        )

    async def _fetch_key(self, key: K, cycle_id: str) -> tuple[list[R], Exception | None]:
        try:
            records = await asyncio.wait_for(self._fetch(key), timeout=self._timeout_sec)
        except asyncio.TimeoutError:
            error: Exception = SourceFetchError(
                f"query for {_key_label(key)} timed out after {self._timeout_sec}s"
            )
        except Exception as exc:
            error = exc
        else:
            self._cache.update(key, records, self._clock.now())
            return list(records), None

        entry = self._cache.get(key)
        logger.warning(
            "Source query failed, using last known records",
            feed_type=self.feed_type,
            cycle_id=cycle_id,
            source_key=_key_label(key),
            error=str(error),
            cached_records=len(entry.records) if entry else 0,
            last_success_at=entry.last_success_at.isoformat() if entry else None,
        )
        return self._cache.records(key), error

    def _notify(self, message: gtfs_realtime_pb2.FeedMessage, errors: list[Exception]) -> None:
        if self._on_update is None:
            return
        try:
            self._on_update(message, list(errors))
        except Exception as exc:
            logger.error(
                "Feed update callback failed",
                feed_type=self.feed_type,
                exc_info=exc,
            )


def _key_label(key: Hashable) -> str:
    value = getattr(key, "value", key)
    return str(value)
