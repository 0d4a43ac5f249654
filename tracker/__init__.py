"""
NFT Activity Tracker

Periodic snapshot capture and hierarchical activity rollups for a fixed
collection of tokenized assets.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Immutable entity records, snapshots, events and error types
   - No I/O, no behavior beyond construction and (de)serialization

2. TEMPORAL CORE (temporal/)
   - Transition classification: snapshot pairs -> typed events
   - Rollup merging: child event logs -> one coarser event log
   - Period selection: which stored children belong to a target period
   - MUST NOT: perform I/O or hold state between calls

3. STORAGE (storage/)
   - Load / save JSON artifacts by level and period key
   - MUST NOT: interpret events or compute rollups

4. INGESTION (ingestion/)
   - Fetch the raw collection JSON from its HTTP source

5. ENGINE + API (engine.py, api/)
   - Orchestration of the above and the HTTP trigger surface

CONSTRAINTS ENFORCED:
=====================
- Immutability: snapshots and event logs are never mutated after creation
- Determinism: identical inputs produce byte-identical artifacts
- Explicit errors: whole-input failures surface as typed errors
"""

from .config import TrackerConfig
from .engine import ActivityTracker, PeriodResult

__all__ = [
    'TrackerConfig',
    'ActivityTracker',
    'PeriodResult',
]

__version__ = "0.1.0"
