"""
Test Fixtures

Explicit builders for records, snapshots and event logs.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List

from tracker.contracts.base import Level
from tracker.contracts.events import (
    Marketplace, Protocol, Sale, Transfer, Listing, Delisting, Stake, BreakChange,
)
from tracker.contracts.snapshot import Snapshot
from tracker.storage import InMemoryArtifactStore
from tracker.temporal.event_log import EventLog, EventLogBuilder


# =============================================================================
# FIXED TIMES
# =============================================================================

DAY = date(2024, 3, 14)
NOW = datetime(2024, 3, 15, 0, 30, tzinfo=timezone.utc)


# =============================================================================
# RAW RECORDS / SNAPSHOTS
# =============================================================================

def raw_record(entity_id: int, owner: str = "alice", **flags: Any) -> Dict[str, Any]:
    """Raw source record. Flags: bbl, boost, daodao, enterprise, broken."""
    record = {
        'id': entity_id,
        'owner': owner,
        'bbl': False,
        'boost': False,
        'daodao': False,
        'enterprise': False,
        'broken': False,
    }
    record.update(flags)
    return record


def snapshot(*records: Dict[str, Any], key: str = None) -> Snapshot:
    return Snapshot.from_raw(list(records), key=key)


# =============================================================================
# EVENT LOGS
# =============================================================================

def log_with(entries: Dict[int, List]) -> EventLog:
    """EventLog holding exactly the given events per entity."""
    builder = EventLogBuilder()
    for entity_id, events in entries.items():
        for event in events:
            builder.add(entity_id, event)
    return builder.build()


def log_with_total(total: int, entity_id: int = 1) -> EventLog:
    """EventLog with `total` transfers on one entity."""
    return log_with({entity_id: [Transfer(f"o{i}", f"o{i + 1}", hour=i + 1) for i in range(total)]})


SAMPLE_A = log_with({
    7: [Sale(Marketplace.BBL, "alice", "bob", hour=3), Delisting(Marketplace.BBL, hour=3)],
    42: [Stake(Protocol.DAODAO, hour=5)],
})

SAMPLE_B = log_with({
    7: [Listing(Marketplace.BOOST, hour=1)],
    99: [BreakChange(False, True, hour=12)],
})


def store_with_day(day_snapshots: Dict[int, List[Dict[str, Any]]], day: date = DAY) -> InMemoryArtifactStore:
    """In-memory store holding hourly snapshots of one day, keyed by hour."""
    store = InMemoryArtifactStore()
    for hour, records in day_snapshots.items():
        store.save_snapshot(f"{day:%Y-%m-%d}-{hour:02d}00", records)
    return store


def store_with_logs(level: Level, logs: Dict[str, EventLog]) -> InMemoryArtifactStore:
    store = InMemoryArtifactStore()
    for key, log in logs.items():
        store.save_event_log(level, key, log)
    return store
