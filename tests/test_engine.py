"""
Tracker Engine Tests
====================

Daily detection and rollups against an in-memory store.

Verifies:
1. Missing / unreadable hourly snapshots are skipped, not fatal
2. Too few snapshots or child logs raise InsufficientData
3. Rollups select exact period members and overwrite their target
4. A failed write still returns the computed log
"""

import asyncio
import json
from datetime import date

import httpx
import pytest

from tracker.config import ClassifierConfig, RollupConfig, TrackerConfig
from tracker.contracts.base import (
    InsufficientData, Level, MalformedInput, SourceUnavailable, StorageWriteResult,
)
from tracker.contracts.events import Delisting, Marketplace, Sale, Transfer
from tracker.engine import ActivityTracker
from tracker.ingestion.fetcher import SnapshotFetcher
from tracker.storage import InMemoryArtifactStore
from tracker.temporal.event_log import EventLog, EventSummary

from .fixtures import DAY, NOW, SAMPLE_A, SAMPLE_B, log_with_total, raw_record, store_with_day, store_with_logs


def make_tracker(store, entity_count=50, **rollup):
    config = TrackerConfig(
        classifier=ClassifierConfig(entity_count=entity_count),
        rollup=RollupConfig(**rollup),
    )
    return ActivityTracker(config, store=store)


class TestProcessDaily:

    def test_detects_and_saves(self):
        store = store_with_day({
            0: [raw_record(42, "alice")],
            1: [raw_record(42, "bob")],
        })
        tracker = make_tracker(store)

        result = tracker.process_daily(DAY)

        assert result.saved
        assert result.period_key == "2024-03-14"
        assert result.input_keys == ("2024-03-14-0000", "2024-03-14-0100")
        assert result.log.activity_log[42] == (Transfer("alice", "bob", hour=1),)
        assert store.load_event_log(Level.DAILY, "2024-03-14") == result.log

    def test_gaps_skipped_positions_follow_loaded_order(self, caplog):
        store = store_with_day({
            3: [raw_record(1, "a", bbl=True)],
            9: [raw_record(1, "b")],
            15: [raw_record(1, "c")],
        })
        tracker = make_tracker(store)

        result = tracker.process_daily(DAY)

        assert result.log.activity_log[1] == (
            Sale(Marketplace.BBL, "a", "b", hour=1),
            Delisting(Marketplace.BBL, hour=1),
            Transfer("b", "c", hour=2),
        )
        assert "Missing snapshot for 2024-03-14-0000" in caplog.text

    def test_unreadable_snapshot_skipped(self):
        store = store_with_day({
            0: [raw_record(1, "a")],
            2: [raw_record(1, "b")],
        })
        store.put_text(Level.SNAPSHOTS, "2024-03-14-0100", "{broken")
        tracker = make_tracker(store)

        result = tracker.process_daily(DAY)

        assert result.input_keys == ("2024-03-14-0000", "2024-03-14-0200")
        assert result.log.total_events == 1

    def test_single_snapshot_is_insufficient(self):
        store = store_with_day({5: [raw_record(1)]})
        tracker = make_tracker(store)

        with pytest.raises(InsufficientData) as excinfo:
            tracker.process_daily(DAY)

        assert ("period", "2024-03-14") in excinfo.value.error.context
        assert store.list_keys(Level.DAILY) == []


class TestAggregate:

    def daily_store(self):
        return store_with_logs(Level.DAILY, {
            "2024-03-10": log_with_total(100),
            "2024-03-11": log_with_total(5),
            "2024-03-12": log_with_total(0),
            "2024-03-13": log_with_total(3, entity_id=2),
            "2024-03-18": log_with_total(50),
            "2024-04-01": log_with_total(7),
        })

    def test_weekly_uses_only_week_days(self):
        tracker = make_tracker(self.daily_store())

        result = tracker.aggregate_weekly("2024-W11")

        assert result.input_keys == ("2024-03-11", "2024-03-12", "2024-03-13")
        assert result.total_events == 8
        assert set(result.log.activity_log) == {1, 2}

    def test_monthly_excludes_other_months(self):
        tracker = make_tracker(self.daily_store())

        result = tracker.aggregate_monthly("2024-03")

        assert "2024-04-01" not in result.input_keys
        assert result.total_events == 158

    def test_yearly_from_monthly(self):
        store = store_with_logs(Level.MONTHLY, {
            "2023-12": log_with_total(9),
            "2024-01": SAMPLE_A,
            "2024-02": SAMPLE_B,
        })
        tracker = make_tracker(store)

        result = tracker.aggregate_yearly("2024")

        assert result.input_keys == ("2024-01", "2024-02")
        assert result.total_events == SAMPLE_A.total_events + SAMPLE_B.total_events
        assert store.load_event_log(Level.YEARLY, "2024") == result.log

    def test_rerun_overwrites_instead_of_appending(self):
        store = self.daily_store()
        tracker = make_tracker(store)

        tracker.aggregate_weekly("2024-W11")
        first = store.load_raw(Level.WEEKLY, "2024-W11")
        tracker.aggregate_weekly("2024-W11")
        second = store.load_raw(Level.WEEKLY, "2024-W11")

        assert first == second
        assert second['summary']['total_events'] == 8

    def test_malformed_child_skipped(self):
        store = self.daily_store()
        store.put_text(Level.DAILY, "2024-03-14", '{"summary": {}, "activity_log": {}}')
        tracker = make_tracker(store)

        result = tracker.aggregate_weekly("2024-W11")

        assert "2024-03-14" not in result.input_keys
        assert result.total_events == 8

    def test_child_with_undecodable_event_skipped(self):
        store = self.daily_store()
        store.put_text(Level.DAILY, "2024-03-12", json.dumps({
            'summary': EventSummary(transfers=1, total_events=1).to_dict(),
            'activity_log': {'1': [{'type': []}]},
        }))
        tracker = make_tracker(store)

        result = tracker.aggregate_weekly("2024-W11")

        assert result.input_keys == ("2024-03-11", "2024-03-13")
        assert result.total_events == 8

    def test_no_inputs_is_insufficient(self):
        tracker = make_tracker(self.daily_store())
        with pytest.raises(InsufficientData):
            tracker.aggregate_weekly("2023-W11")

    def test_zero_minimum_allows_empty_rollup(self):
        tracker = make_tracker(self.daily_store(), min_inputs=0)
        result = tracker.aggregate_weekly("2023-W11")
        assert result.log == EventLog.empty()

    def test_cap_on_inputs(self):
        tracker = make_tracker(self.daily_store(), max_days_per_month=2)
        result = tracker.aggregate_monthly("2024-03")
        assert result.input_keys == ("2024-03-10", "2024-03-11")

    def test_key_must_match_level(self):
        tracker = make_tracker(self.daily_store())
        with pytest.raises(MalformedInput):
            tracker.aggregate_weekly("2024-03")
        with pytest.raises(MalformedInput):
            tracker.aggregate(Level.DAILY, "2024-03-14")

    def test_write_failure_still_returns_log(self):
        class FailingStore(InMemoryArtifactStore):
            def save_raw(self, level, key, data):
                if level is Level.WEEKLY:
                    return StorageWriteResult.failed(level, key, OSError("disk full"))
                return super().save_raw(level, key, data)

        store = FailingStore()
        for key, log in {"2024-03-11": log_with_total(5)}.items():
            store.save_event_log(Level.DAILY, key, log)
        tracker = make_tracker(store)

        result = tracker.aggregate_weekly("2024-W11")

        assert not result.saved
        assert "disk full" in result.write.error.message
        assert result.total_events == 5


class TestCaptureAndStatus:

    def test_capture_saves_under_hour_key(self):
        payload = [raw_record(1, "a"), raw_record(2, "b")]
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=payload))
        store = InMemoryArtifactStore()
        tracker = ActivityTracker(
            store=store,
            fetcher=SnapshotFetcher("https://example.test/nfts.json", async_transport=transport),
        )

        result = asyncio.run(tracker.capture_snapshot(NOW))

        assert result.key == "2024-03-15-0000"
        assert result.entity_count == 2
        assert store.load_raw(Level.SNAPSHOTS, "2024-03-15-0000") == payload

    def test_capture_source_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        tracker = ActivityTracker(
            store=InMemoryArtifactStore(),
            fetcher=SnapshotFetcher("https://example.test/nfts.json", async_transport=transport),
        )
        with pytest.raises(SourceUnavailable):
            asyncio.run(tracker.capture_snapshot(NOW))

    def test_status_counts(self):
        store = store_with_day({0: [raw_record(1)], 1: [raw_record(1)]}, day=date(2024, 1, 1))
        store.save_event_log(Level.DAILY, "2024-01-01", EventLog.empty())
        tracker = make_tracker(store)

        assert tracker.status() == {
            'snapshots': 2, 'daily': 1, 'weekly': 0, 'monthly': 0, 'yearly': 0,
        }
