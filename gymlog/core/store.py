"""
Event Store for GymLog.

The single source of truth: an append-only, identity-indexed sequence of
events held in memory. Durability is handled by the CheckpointManager;
derived state is computed on read by the view layer.
"""

from __future__ import annotations

import bisect
import threading
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, Optional

from gymlog.core.errors import DuplicateIdError
from gymlog.core.events.base import BaseEvent, EventType, ensure_utc
from gymlog.utils.logging import get_logger


logger = get_logger("core.store")


@dataclass(frozen=True)
class StoredEvent:
    """An event together with its append sequence number."""

    sequence: int
    event: BaseEvent

    @property
    def id(self) -> str:
        return self.event.id

    @property
    def event_type(self) -> EventType:
        return self.event.event_type


# ============================================================================
# Query
# ============================================================================


class EventQuery:
    """Lazy, restartable view over the store.

    Each iteration starts from a fresh snapshot of the log, so iterating
    twice sees appends made in between. Results are in append order.
    """

    def __init__(
        self,
        store: "EventStore",
        event_types: Optional[Iterable[EventType | str]] = None,
        entity_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ):
        self._store = store
        self._types = (
            frozenset(EventType(t) for t in event_types)
            if event_types is not None else None
        )
        self._entity_id = entity_id
        self._since = ensure_utc(since) if since is not None else None
        self._until = ensure_utc(until) if until is not None else None

    def __iter__(self) -> Iterator[BaseEvent]:
        for stored in self.stored():
            yield stored.event

    def stored(self) -> Iterator[StoredEvent]:
        """Iterate matching entries including their sequence numbers."""
        entries, positions = self._store._candidates(self._types, self._entity_id)
        for pos in positions:
            stored = entries[pos]
            if self._matches(stored.event):
                yield stored

    def _matches(self, event: BaseEvent) -> bool:
        if self._types is not None and event.event_type not in self._types:
            return False
        if self._entity_id is not None and self._entity_id not in event.entity_ids():
            return False
        if self._since is not None and event.timestamp < self._since:
            return False
        if self._until is not None and event.timestamp > self._until:
            return False
        return True

    def count(self) -> int:
        return sum(1 for _ in self.stored())

    def first(self) -> Optional[BaseEvent]:
        return next(iter(self), None)

    def last(self) -> Optional[BaseEvent]:
        found = None
        for event in self:
            found = event
        return found


# ============================================================================
# Event Store
# ============================================================================


class EventStore:
    """Append-only in-memory event log.

    Writes are serialized through a re-entrant lock. The CheckpointManager
    takes the same lock through ``exclusive()`` while it flushes, so a
    checkpoint never observes a half-applied append.

    Usage:
        store = EventStore()
        store.append(GymCreatedEvent(gym_id="g1", name="Home"))
        for event in store.query(event_types=[EventType.GYM_CREATED]):
            ...
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._entries: list[StoredEvent] = []
        self._by_id: dict[str, StoredEvent] = {}
        self._type_index: dict[EventType, list[int]] = {}
        self._entity_index: dict[str, list[int]] = {}
        self._last_sequence = 0
        self._generation = 0

    # ========== Write Path ==========

    def append(self, event: BaseEvent) -> StoredEvent:
        """Append an event.

        Raises:
            DuplicateIdError: If an event with the same id is present.
                The store is left unchanged.
        """
        with self._lock:
            if event.id in self._by_id:
                raise DuplicateIdError(event.id)

            stored = StoredEvent(sequence=self._last_sequence + 1, event=event)
            self._insert(stored)
            self._last_sequence = stored.sequence

        logger.debug(f"Appended {event.event_type.value} {event.id} seq={stored.sequence}")
        return stored

    def load(self, entries: Iterable[StoredEvent], last_sequence: int = 0) -> int:
        """Replace the log with previously persisted entries.

        Used by recovery only. Sequences must strictly increase and ids
        must be unique. ``last_sequence`` restores the counter when the
        newest events were cleared, so sequence numbers are never reused.

        Raises:
            ValueError: On duplicate ids or out-of-order sequences
        """
        entries = list(entries)
        with self._lock:
            seen: set[str] = set()
            previous = 0
            for stored in entries:
                if stored.sequence <= previous:
                    raise ValueError(
                        f"Sequence {stored.sequence} does not follow {previous}"
                    )
                if stored.id in seen:
                    raise ValueError(f"Duplicate event id {stored.id}")
                seen.add(stored.id)
                previous = stored.sequence

            self._reset()
            for stored in entries:
                self._insert(stored)
            self._last_sequence = max(previous, last_sequence)
        return len(entries)

    def clear_historical(self) -> int:
        """Drop everything except identity-defining events.

        The surviving partition is built aside and swapped in under the
        lock, so readers see either the old log or the cleared one.

        Returns:
            Number of events left in the store
        """
        with self._lock:
            before = len(self._entries)
            kept = [stored for stored in self._entries if stored.event.is_identity]
            last_sequence = self._last_sequence

            self._reset()
            for stored in kept:
                self._insert(stored)
            # Sequence numbers are never reused
            self._last_sequence = last_sequence
            self._generation += 1
            after = len(self._entries)

        logger.info(f"Cleared historical data: {before} -> {after} events")
        return after

    def _reset(self) -> None:
        self._entries = []
        self._by_id = {}
        self._type_index = {}
        self._entity_index = {}

    def _insert(self, stored: StoredEvent) -> None:
        position = len(self._entries)
        self._entries.append(stored)
        self._by_id[stored.id] = stored
        self._type_index.setdefault(stored.event_type, []).append(position)
        for entity_id in stored.event.entity_ids():
            self._entity_index.setdefault(entity_id, []).append(position)

    # ========== Read Path ==========

    def query(
        self,
        event_types: Optional[Iterable[EventType | str]] = None,
        entity_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> EventQuery:
        """Build a lazy query over the log.

        Args:
            event_types: Restrict to these tags
            entity_id: Restrict to events referencing this entity
            since: Inclusive lower bound on event timestamp
            until: Inclusive upper bound on event timestamp
        """
        return EventQuery(self, event_types, entity_id, since, until)

    def _candidates(
        self,
        types: Optional[frozenset[EventType]],
        entity_id: Optional[str],
    ) -> tuple[list[StoredEvent], list[int]]:
        """Entry list plus candidate positions, narrowed by the indexes."""
        with self._lock:
            entries = self._entries
            candidates: list[list[int]] = []
            if types is not None:
                merged: list[int] = []
                for event_type in types:
                    merged.extend(self._type_index.get(event_type, ()))
                candidates.append(sorted(merged))
            if entity_id is not None:
                candidates.append(list(self._entity_index.get(entity_id, ())))

            if not candidates:
                return entries, list(range(len(entries)))
            return entries, min(candidates, key=len)

    def get(self, event_id: str) -> Optional[BaseEvent]:
        with self._lock:
            stored = self._by_id.get(event_id)
        return stored.event if stored else None

    def events(self) -> tuple[BaseEvent, ...]:
        """Immutable snapshot of the log in append order."""
        with self._lock:
            return tuple(stored.event for stored in self._entries)

    def entries(self) -> tuple[StoredEvent, ...]:
        with self._lock:
            return tuple(self._entries)

    def pending_since(self, sequence: int) -> list[StoredEvent]:
        """Entries appended after ``sequence``."""
        with self._lock:
            start = bisect.bisect_right(self._entries, sequence, key=lambda s: s.sequence)
            return self._entries[start:]

    def __contains__(self, event_id: object) -> bool:
        with self._lock:
            return event_id in self._by_id

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[BaseEvent]:
        return iter(self.events())

    # ========== Diagnostics ==========

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def count_by_type(self, event_type: EventType | str) -> int:
        with self._lock:
            return len(self._type_index.get(EventType(event_type), ()))

    def counts_by_type(self) -> dict[str, int]:
        """Event counts per tag, largest first."""
        with self._lock:
            counts = Counter({t.value: len(p) for t, p in self._type_index.items() if p})
        return dict(counts.most_common())

    @property
    def last_sequence(self) -> int:
        with self._lock:
            return self._last_sequence

    @property
    def generation(self) -> int:
        """Bumped whenever the log is rewritten instead of extended."""
        with self._lock:
            return self._generation

    @contextmanager
    def exclusive(self) -> Iterator["EventStore"]:
        """Hold the append path for the duration of the block."""
        with self._lock:
            yield self
