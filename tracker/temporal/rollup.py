"""
Rollup Merger
=============

Combines an ordered sequence of same-shape EventLogs into one coarser
EventLog.

- Summary: element-wise sum (order independent)
- activity_log: per-entity concatenation in input order (order dependent)
- Hour offsets are carried verbatim

A rollup is always recomputed from its full input set and written over
the target artifact. Merging into a previously merged result would
double count.
"""

from __future__ import annotations
from typing import Iterable

from .event_log import EventLog, EventLogBuilder


def merge(logs: Iterable[EventLog]) -> EventLog:
    """Fold child logs, in the given order, into a fresh EventLog."""
    builder = EventLogBuilder()
    builder.extend_all(logs)
    return builder.build()
