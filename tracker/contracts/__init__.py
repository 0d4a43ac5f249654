"""
Contracts Module

Immutable data types shared by every layer: entity records and snapshots,
the event variants, errors and artifact levels. No layer imports another
layer's implementation to obtain these.
"""

from .base import (
    ErrorCode, Error, TrackerError, NotFound, InsufficientData,
    MalformedInput, WriteFailure, SourceUnavailable, Level, StorageWriteResult,
)
from .events import (
    COUNTER_NAMES, Marketplace, Protocol, Event,
    Sale, Transfer, Listing, Delisting, Stake, Unstake, BreakChange,
    event_from_dict,
)
from .snapshot import EntityRecord, Snapshot

__all__ = [
    'ErrorCode', 'Error', 'TrackerError', 'NotFound', 'InsufficientData',
    'MalformedInput', 'WriteFailure', 'SourceUnavailable', 'Level',
    'StorageWriteResult',
    'COUNTER_NAMES', 'Marketplace', 'Protocol', 'Event',
    'Sale', 'Transfer', 'Listing', 'Delisting', 'Stake', 'Unstake', 'BreakChange',
    'event_from_dict',
    'EntityRecord', 'Snapshot',
]
