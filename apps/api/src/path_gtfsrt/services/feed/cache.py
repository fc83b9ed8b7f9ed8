"""Last known-good records per upstream source key."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Hashable, Sequence, TypeVar

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")


@dataclass(frozen=True)
class CacheEntry(Generic[R]):
    records: tuple[R, ...]
    last_success_at: datetime


class SourceCache(Generic[K, R]):
    """Per-key record cache owned by a single cycle runner.

    An entry is only written after a successful fetch and is replaced as a
    whole; failures never touch it.
    """

    def __init__(self) -> None:
        self._entries: dict[K, CacheEntry[R]] = {}

    def update(self, key: K, records: Sequence[R], fetched_at: datetime) -> None:
        self._entries[key] = CacheEntry(records=tuple(records), last_success_at=fetched_at)

    def get(self, key: K) -> CacheEntry[R] | None:
        return self._entries.get(key)

    def records(self, key: K) -> list[R]:
        """Records from the last successful fetch, or an empty list."""
        entry = self._entries.get(key)
        if entry is None:
            return []
        return list(entry.records)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
