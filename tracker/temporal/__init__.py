"""
Temporal Core
=============

Pure computation over already-loaded data. No I/O, no shared state.

Modules:
- event_log: EventLog, EventSummary and the shared builder
- classifier: snapshot pairs -> typed events
- rollup: child logs -> one coarser log
- periods: period keys, calendar ranges and source selection
"""

from .event_log import EventLog, EventSummary, EventLogBuilder
from .classifier import TransitionClassifier, classify_pair, detect_events
from .rollup import merge
from .periods import PeriodRange, parse_period_key, select

__all__ = [
    'EventLog',
    'EventSummary',
    'EventLogBuilder',
    'TransitionClassifier',
    'classify_pair',
    'detect_events',
    'merge',
    'PeriodRange',
    'parse_period_key',
    'select',
]
