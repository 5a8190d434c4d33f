"""
CounterStore — per-event counts shared by the capture and delivery threads.

Every mutation and every snapshot runs under one lock, so a snapshot never
observes an increment that landed in the event map but not yet in its class
total. Counts only grow; take() hands the current counts to the caller and
starts a fresh cycle in the same critical section.
"""

import threading
from dataclasses import dataclass, field
from types import MappingProxyType

from .events import EventClass, event_class
from .errors import CorruptBackup

_TOTAL_FIELDS = {
    EventClass.KEY: "total_keys",
    EventClass.CLICK: "total_clicks",
    EventClass.WHEEL: "total_wheels",
}


@dataclass(frozen=True)
class CounterSnapshot:
    total_keys: int = 0
    total_clicks: int = 0
    total_wheels: int = 0
    events: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        # Private read-only copy; the caller's dict can't change us later
        object.__setattr__(self, "events", MappingProxyType(dict(self.events)))

    @property
    def is_empty(self):
        return not (self.total_keys or self.total_clicks or self.total_wheels or self.events)

    @property
    def total(self):
        return self.total_keys + self.total_clicks + self.total_wheels

    def merged(self, other):
        """New snapshot holding the sum of both."""
        if other is None:
            return self
        events = dict(self.events)
        for key, count in other.events.items():
            events[key] = events.get(key, 0) + count
        return CounterSnapshot(
            total_keys=self.total_keys + other.total_keys,
            total_clicks=self.total_clicks + other.total_clicks,
            total_wheels=self.total_wheels + other.total_wheels,
            events=events,
        )

    def to_dict(self):
        return {
            "total_keys": self.total_keys,
            "total_clicks": self.total_clicks,
            "total_wheels": self.total_wheels,
            "events": dict(self.events),
        }

    @classmethod
    def from_dict(cls, data):
        """Parse the wire/backup form. Raises CorruptBackup on bad shape."""
        if not isinstance(data, dict):
            raise CorruptBackup(f"expected a JSON object, got {type(data).__name__}")
        values = {}
        for name in ("total_keys", "total_clicks", "total_wheels"):
            value = data.get(name)
            if not _is_count(value):
                raise CorruptBackup(f"{name} must be a non-negative integer, got {value!r}")
            values[name] = value
        events = data.get("events")
        if not isinstance(events, dict):
            raise CorruptBackup("events must be an object")
        for key, count in events.items():
            if not _is_count(count):
                raise CorruptBackup(f"count for {key!r} must be a non-negative integer")
        return cls(events=events, **values)


def _is_count(value):
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class CounterStore:
    """Thread-safe event counters. One instance per agent process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events = {}
        self._totals = dict.fromkeys(_TOTAL_FIELDS.values(), 0)

    def increment(self, key, cls=None, n=1):
        """Add n to key's count and to its class total."""
        if n <= 0:
            return
        cls = EventClass(cls) if cls is not None else event_class(key)
        total_field = _TOTAL_FIELDS.get(cls)
        with self._lock:
            self._events[key] = self._events.get(key, 0) + n
            if total_field:
                self._totals[total_field] += n

    def snapshot(self):
        with self._lock:
            return self._snapshot_locked()

    def take(self):
        """Snapshot and reset in one critical section."""
        with self._lock:
            snap = self._snapshot_locked()
            self._events = {}
            self._totals = dict.fromkeys(_TOTAL_FIELDS.values(), 0)
        return snap

    def merge_from(self, snapshot):
        """Add a recovered snapshot on top of whatever was already counted."""
        if snapshot is None:
            return
        with self._lock:
            for key, count in snapshot.events.items():
                self._events[key] = self._events.get(key, 0) + count
            self._totals["total_keys"] += snapshot.total_keys
            self._totals["total_clicks"] += snapshot.total_clicks
            self._totals["total_wheels"] += snapshot.total_wheels

    def _snapshot_locked(self):
        return CounterSnapshot(events=self._events, **self._totals)
