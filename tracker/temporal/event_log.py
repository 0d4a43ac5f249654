"""
Event Log
=========

The per-period artifact: a summary-counter block plus a sparse
per-entity event map.

INVARIANTS:
- total_events == sum of the twelve other counters
- total_events == number of events across activity_log
- activity_log never holds an entity with zero events
- Same shape at every level (daily, weekly, monthly, yearly)

Logs are immutable. EventLogBuilder is the only way to accumulate one,
and is shared by the classifier and the rollup merger.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from ..contracts.base import MalformedInput
from ..contracts.events import COUNTER_NAMES, Event, event_from_dict


def _is_entity_key(raw_id: Any) -> bool:
    """Canonical decimal form, exactly as to_dict writes it."""
    return (
        isinstance(raw_id, str)
        and raw_id.isascii()
        and raw_id.isdecimal()
        and str(int(raw_id)) == raw_id
    )


@dataclass(frozen=True)
class EventSummary:
    """Immutable counter block."""
    bbl_sales: int = 0
    boost_sales: int = 0
    transfers: int = 0
    bbl_listings: int = 0
    bbl_delistings: int = 0
    boost_listings: int = 0
    boost_delistings: int = 0
    daodao_stakes: int = 0
    daodao_unstakes: int = 0
    enterprise_stakes: int = 0
    enterprise_unstakes: int = 0
    breaks: int = 0
    total_events: int = 0

    @property
    def counter_sum(self) -> int:
        """Sum of all counters except total_events."""
        return sum(getattr(self, name) for name in COUNTER_NAMES)

    def __add__(self, other: EventSummary) -> EventSummary:
        return EventSummary(**{
            f.name: getattr(self, f.name) + getattr(other, f.name)
            for f in fields(self)
        })

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @staticmethod
    def from_dict(data: Any) -> EventSummary:
        if not isinstance(data, dict):
            raise MalformedInput("summary must be an object")

        expected = {f.name for f in fields(EventSummary)}
        unknown = set(data) - expected
        missing = expected - set(data)
        if unknown:
            raise MalformedInput(f"Unknown summary counters: {sorted(unknown)}")
        if missing:
            raise MalformedInput(f"Missing summary counters: {sorted(missing)}")

        for name, value in data.items():
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise MalformedInput(f"Counter {name} must be a non-negative integer, got {value!r}")

        summary = EventSummary(**data)
        if summary.total_events != summary.counter_sum:
            raise MalformedInput(
                f"total_events {summary.total_events} != counter sum {summary.counter_sum}"
            )
        return summary


@dataclass(frozen=True)
class EventLog:
    """
    Immutable event log for one period at one level.

    activity_log maps entity id -> events in chronological order.
    """
    summary: EventSummary = field(default_factory=EventSummary)
    activity_log: Mapping[int, Tuple[Event, ...]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'activity_log', MappingProxyType(dict(self.activity_log)))

    @staticmethod
    def empty() -> EventLog:
        return EventLog()

    @property
    def total_events(self) -> int:
        return self.summary.total_events

    def event_count(self) -> int:
        """Number of events actually held in activity_log."""
        return sum(len(events) for events in self.activity_log.values())

    def events_for(self, entity_id: int) -> Tuple[Event, ...]:
        return self.activity_log.get(entity_id, ())

    def is_consistent(self) -> bool:
        """Check I1 and the sparse-map invariant."""
        return (
            self.summary.total_events == self.summary.counter_sum
            and self.summary.total_events == self.event_count()
            and all(self.activity_log.values())
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialized form. Entities are emitted in ascending id order."""
        return {
            'summary': self.summary.to_dict(),
            'activity_log': {
                str(entity_id): [event.to_dict() for event in self.activity_log[entity_id]]
                for entity_id in sorted(self.activity_log)
            },
        }

    @staticmethod
    def from_dict(data: Any) -> EventLog:
        """Parse a serialized log. Raises MalformedInput on bad shape."""
        if not isinstance(data, dict):
            raise MalformedInput("Event log must be an object")
        if 'summary' not in data or 'activity_log' not in data:
            raise MalformedInput("Event log requires 'summary' and 'activity_log'")

        summary = EventSummary.from_dict(data['summary'])

        raw_log = data['activity_log']
        if not isinstance(raw_log, dict):
            raise MalformedInput("activity_log must be an object")

        builder = EventLogBuilder()
        for raw_id, raw_events in raw_log.items():
            if not _is_entity_key(raw_id):
                raise MalformedInput(f"Entity key must be a canonical integer, got {raw_id!r}")
            entity_id = int(raw_id)
            if not isinstance(raw_events, list):
                raise MalformedInput(f"Events for entity {raw_id} must be a list")
            for raw_event in raw_events:
                builder.add(entity_id, event_from_dict(raw_event))

        log = builder.build()
        if log.summary != summary:
            mismatched = [
                name for name in COUNTER_NAMES + ('total_events',)
                if getattr(log.summary, name) != getattr(summary, name)
            ]
            raise MalformedInput(
                f"summary disagrees with activity_log on {mismatched}"
            )
        return log


class EventLogBuilder:
    """
    Mutable accumulator for an EventLog.

    add() records one freshly detected event. extend() folds a whole child
    log in: summary counters are summed and per-entity sequences appended.
    """

    def __init__(self):
        self._counters: Dict[str, int] = {name: 0 for name in COUNTER_NAMES}
        self._total = 0
        self._activity: Dict[int, List[Event]] = {}

    def add(self, entity_id: int, event: Event) -> None:
        self._counters[event.counter] += 1
        self._total += 1
        self._activity.setdefault(entity_id, []).append(event)

    def extend(self, log: EventLog) -> None:
        for name in COUNTER_NAMES:
            self._counters[name] += getattr(log.summary, name)
        self._total += log.summary.total_events

        for entity_id, events in log.activity_log.items():
            if events:
                self._activity.setdefault(entity_id, []).extend(events)

    def extend_all(self, logs: Iterable[EventLog]) -> None:
        for log in logs:
            self.extend(log)

    def build(self) -> EventLog:
        return EventLog(
            summary=EventSummary(total_events=self._total, **self._counters),
            activity_log={
                entity_id: tuple(events)
                for entity_id, events in self._activity.items()
            },
        )
