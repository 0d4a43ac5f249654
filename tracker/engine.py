"""
Engine Orchestration Module

Coordinates capture, daily detection and rollups over the artifact store.

FLOW:
=====
1. capture_snapshot: source -> snapshots/<YYYY-MM-DD-HH00>
2. process_daily:    snapshots of one day -> daily/<YYYY-MM-DD>
3. aggregate:        daily   -> weekly/<YYYY-Www>, monthly/<YYYY-MM>
                     monthly -> yearly/<YYYY>

Missing or unreadable inputs are skipped with a warning. Too few usable
inputs raises InsufficientData. Rollups are always recomputed from the
selected inputs and overwrite their target.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Tuple
import logging

from .config import TrackerConfig
from .contracts.base import (
    InsufficientData, Level, MalformedInput, NotFound, SourceUnavailable,
    StorageWriteResult, WriteFailure,
)
from .contracts.snapshot import Snapshot
from .ingestion.fetcher import SnapshotFetcher
from .storage import ArtifactStore, create_store
from .temporal.classifier import TransitionClassifier
from .temporal.event_log import EventLog
from .temporal.periods import day_key, expect_level, hour_key, hourly_keys, select
from .temporal.rollup import merge

logger = logging.getLogger(__name__)


# target level -> source level
ROLLUP_SOURCES: Dict[Level, Level] = {
    Level.WEEKLY: Level.DAILY,
    Level.MONTHLY: Level.DAILY,
    Level.YEARLY: Level.MONTHLY,
}


@dataclass(frozen=True)
class PeriodResult:
    """
    Outcome of building one period's EventLog.

    The log is returned even when the write failed so the caller can retry
    persisting it.
    """
    level: Level
    period_key: str
    input_keys: Tuple[str, ...]
    log: EventLog
    write: StorageWriteResult

    @property
    def saved(self) -> bool:
        return self.write.success

    @property
    def total_events(self) -> int:
        return self.log.total_events


@dataclass(frozen=True)
class CaptureResult:
    key: str
    entity_count: int
    write: StorageWriteResult


class ActivityTracker:
    """
    Unified entry point used by the HTTP layer and scripts.
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        store: Optional[ArtifactStore] = None,
        fetcher: Optional[SnapshotFetcher] = None
    ):
        self._config = config or TrackerConfig()
        self._store = store if store is not None else create_store(self._config.storage)
        self._fetcher = fetcher if fetcher is not None else SnapshotFetcher(
            self._config.source.url, timeout=self._config.source.timeout_seconds
        )
        self._classifier = TransitionClassifier(
            entity_count=self._config.classifier.entity_count,
            min_snapshots=self._config.classifier.min_snapshots,
        )

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def store(self) -> ArtifactStore:
        return self._store

    # =========================================================================
    # CAPTURE
    # =========================================================================

    async def capture_snapshot(self, now: Optional[datetime] = None) -> CaptureResult:
        """Fetch the source and store it under the current hour key."""
        now = now or datetime.now(timezone.utc)
        key = hour_key(now)
        logger.info("Starting hourly snapshot capture for %s", key)

        result = await self._fetcher.fetch()
        if not result.success:
            raise SourceUnavailable(
                f"Snapshot source unavailable: {result.error_message}",
                url=result.url,
                status=result.status.value,
            )

        write = self._store.save_snapshot(key, result.payload)
        if not write.success:
            raise WriteFailure(write.error.message, level=Level.SNAPSHOTS.value, key=key)

        logger.info("Snapshot saved: %s (%d records)", key, result.entity_count)
        return CaptureResult(key=key, entity_count=result.entity_count, write=write)

    # =========================================================================
    # DAILY DETECTION
    # =========================================================================

    def load_day_snapshots(self, day: date) -> List[Snapshot]:
        """Load the hourly snapshots of a day in hour order, skipping gaps."""
        snapshots = []
        for key in hourly_keys(day, self._config.classifier.hours_per_day):
            try:
                snapshots.append(self._store.load_snapshot(key))
            except NotFound:
                logger.warning("Missing snapshot for %s", key)
            except MalformedInput as e:
                logger.warning("Skipping unreadable snapshot %s: %s", key, e)
        return snapshots

    def process_daily(self, day: date) -> PeriodResult:
        period_key = day_key(day)
        logger.info("Starting daily event processing for %s", period_key)

        snapshots = self.load_day_snapshots(day)
        logger.info("Found %d snapshots for %s", len(snapshots), period_key)

        log = self._classifier.detect(snapshots, period=period_key)
        write = self._store.save_event_log(Level.DAILY, period_key, log)
        return PeriodResult(
            level=Level.DAILY,
            period_key=period_key,
            input_keys=tuple(s.key for s in snapshots),
            log=log,
            write=write,
        )

    # =========================================================================
    # ROLLUPS
    # =========================================================================

    def max_inputs(self, target_level: Level) -> int:
        rollup = self._config.rollup
        return {
            Level.WEEKLY: rollup.max_days_per_week,
            Level.MONTHLY: rollup.max_days_per_month,
            Level.YEARLY: rollup.max_months_per_year,
        }[target_level]

    def select_inputs(self, target_level: Level, period_key: str) -> List[str]:
        source_level = ROLLUP_SOURCES[target_level]
        return select(
            source_level,
            period_key,
            self._store.list_keys(source_level),
            self.max_inputs(target_level),
        )

    def aggregate(self, target_level: Level, period_key: str) -> PeriodResult:
        """
        Build target_level/period_key from its child artifacts.

        Raises MalformedInput when period_key is not a key of target_level,
        InsufficientData when fewer than the configured minimum of inputs
        could be loaded.
        """
        if target_level not in ROLLUP_SOURCES:
            raise MalformedInput(f"{target_level.value} is not a rollup level",
                                 level=target_level.value)
        expect_level(period_key, target_level)
        source_level = ROLLUP_SOURCES[target_level]

        selected = self.select_inputs(target_level, period_key)
        logger.info("Aggregating %s %s from %d %s logs",
                    target_level.value, period_key, len(selected), source_level.value)

        loaded_keys = []
        logs = []
        for key in selected:
            try:
                logs.append(self._store.load_event_log(source_level, key))
                loaded_keys.append(key)
            except NotFound:
                logger.warning("Missing %s log %s", source_level.value, key)
            except MalformedInput as e:
                logger.warning("Skipping malformed %s log %s: %s", source_level.value, key, e)

        minimum = self._config.rollup.min_inputs
        if len(logs) < minimum:
            raise InsufficientData(
                f"Need at least {minimum} {source_level.value} logs for "
                f"{target_level.value} {period_key}, found {len(logs)}",
                level=target_level.value,
                period=period_key,
                available=len(logs),
            )

        log = merge(logs)
        write = self._store.save_event_log(target_level, period_key, log)
        logger.info("%s %s: %d events", target_level.value, period_key, log.total_events)
        return PeriodResult(
            level=target_level,
            period_key=period_key,
            input_keys=tuple(loaded_keys),
            log=log,
            write=write,
        )

    def aggregate_weekly(self, week: str) -> PeriodResult:
        return self.aggregate(Level.WEEKLY, week)

    def aggregate_monthly(self, month: str) -> PeriodResult:
        return self.aggregate(Level.MONTHLY, month)

    def aggregate_yearly(self, year: str) -> PeriodResult:
        return self.aggregate(Level.YEARLY, year)

    # =========================================================================
    # READ ACCESS
    # =========================================================================

    def load_event_log(self, level: Level, period_key: str) -> EventLog:
        return self._store.load_event_log(level, period_key)

    def status(self) -> Dict[str, int]:
        return {level.value: self._store.count(level) for level in Level}
