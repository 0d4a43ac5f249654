"""
Transition Classifier
=====================

Turns an ordered sequence of snapshots into an EventLog by comparing
every adjacent pair.

For each pair (prev, curr) at position i (1 for the first pair) and each
entity observed in both, the checks below run independently, in order:

1. Ownership   - owner changed: Sale{bbl} if prev was listed on bbl,
                 else Sale{boost} if prev was listed on boost, else Transfer.
                 At most one ownership event per pair.
2. bbl         - listing flag changed: Listing / Delisting
3. boost       - listing flag changed: Listing / Delisting
4. daodao      - staking flag changed: Stake / Unstake
5. enterprise  - staking flag changed: Stake / Unstake
6. Condition   - broken flag changed: BreakChange{from, to}

There is no deduplication between checks: a sale that also flips the
listing flag produces both events.
"""

from __future__ import annotations
from typing import Iterator, Optional, Sequence
import logging

from ..contracts.base import InsufficientData
from ..contracts.events import (
    Marketplace, Protocol, Event,
    Sale, Transfer, Listing, Delisting, Stake, Unstake, BreakChange,
)
from ..contracts.snapshot import EntityRecord, Snapshot
from .event_log import EventLog, EventLogBuilder

logger = logging.getLogger(__name__)

DEFAULT_ENTITY_COUNT = 10000
MIN_SNAPSHOTS = 2


def _listing_event(marketplace: Marketplace, listed: bool, hour: int) -> Event:
    return Listing(marketplace, hour) if listed else Delisting(marketplace, hour)


def _staking_event(protocol: Protocol, staked: bool, hour: int) -> Event:
    return Stake(protocol, hour) if staked else Unstake(protocol, hour)


def classify_pair(prev: EntityRecord, curr: EntityRecord, hour: int) -> Iterator[Event]:
    """Yield the events for one entity across one adjacent snapshot pair."""
    if prev.owner != curr.owner:
        if prev.listed_bbl:
            yield Sale(Marketplace.BBL, prev.owner, curr.owner, hour)
        elif prev.listed_boost:
            yield Sale(Marketplace.BOOST, prev.owner, curr.owner, hour)
        else:
            yield Transfer(prev.owner, curr.owner, hour)

    if prev.listed_bbl != curr.listed_bbl:
        yield _listing_event(Marketplace.BBL, curr.listed_bbl, hour)

    if prev.listed_boost != curr.listed_boost:
        yield _listing_event(Marketplace.BOOST, curr.listed_boost, hour)

    if prev.staked_daodao != curr.staked_daodao:
        yield _staking_event(Protocol.DAODAO, curr.staked_daodao, hour)

    if prev.staked_enterprise != curr.staked_enterprise:
        yield _staking_event(Protocol.ENTERPRISE, curr.staked_enterprise, hour)

    if prev.broken != curr.broken:
        yield BreakChange(prev.broken, curr.broken, hour)


class TransitionClassifier:
    """
    Stateless detector over a fixed entity id domain [1, entity_count].

    GUARANTEES:
    ===========
    - Pairs are scanned in increasing position order
    - Per-entity events are chronological
    - Entities absent from either side of a pair are skipped, not errors
    """

    def __init__(
        self,
        entity_count: int = DEFAULT_ENTITY_COUNT,
        min_snapshots: int = MIN_SNAPSHOTS
    ):
        if entity_count < 1:
            raise ValueError("entity_count must be positive")
        if min_snapshots < MIN_SNAPSHOTS:
            raise ValueError(f"min_snapshots must be at least {MIN_SNAPSHOTS}")
        self._entity_count = entity_count
        self._min_snapshots = min_snapshots

    @property
    def entity_count(self) -> int:
        return self._entity_count

    @property
    def min_snapshots(self) -> int:
        return self._min_snapshots

    def entity_ids(self) -> range:
        return range(1, self._entity_count + 1)

    def detect(self, snapshots: Sequence[Snapshot], period: Optional[str] = None) -> EventLog:
        """
        Build the EventLog for an ordered snapshot sequence.

        Raises InsufficientData when fewer than min_snapshots are given.
        """
        if len(snapshots) < self._min_snapshots:
            raise InsufficientData(
                f"Need at least {self._min_snapshots} snapshots, got {len(snapshots)}",
                period=period,
                available=len(snapshots),
            )

        builder = EventLogBuilder()
        for entity_id in self.entity_ids():
            for hour in range(1, len(snapshots)):
                prev = snapshots[hour - 1].get(entity_id)
                curr = snapshots[hour].get(entity_id)
                if prev is None or curr is None:
                    continue
                for event in classify_pair(prev, curr, hour):
                    builder.add(entity_id, event)

        log = builder.build()
        logger.info(
            "Detected %d events across %d snapshots%s",
            log.total_events, len(snapshots), f" for {period}" if period else "",
        )
        return log


def detect_events(
    snapshots: Sequence[Snapshot],
    entity_count: int = DEFAULT_ENTITY_COUNT,
    min_snapshots: int = MIN_SNAPSHOTS
) -> EventLog:
    """Convenience wrapper around TransitionClassifier.detect."""
    return TransitionClassifier(entity_count, min_snapshots).detect(snapshots)
