"""
Configuration

Dataclass configuration for every layer, composed into TrackerConfig.
TrackerConfig.from_env() applies environment overrides for deployment.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional
import os

from .temporal.classifier import DEFAULT_ENTITY_COUNT, MIN_SNAPSHOTS


DEFAULT_SOURCE_URL = "https://deving.zone/en/nfts/alliance_daos.json"
DEFAULT_DATA_DIR = "./data"


@dataclass
class ClassifierConfig:
    """Entity domain and minimum snapshot count for daily detection."""
    entity_count: int = DEFAULT_ENTITY_COUNT
    min_snapshots: int = MIN_SNAPSHOTS
    hours_per_day: int = 24

    def __post_init__(self):
        if self.entity_count < 1:
            raise ValueError("entity_count must be positive")
        if self.min_snapshots < MIN_SNAPSHOTS:
            raise ValueError(f"min_snapshots must be at least {MIN_SNAPSHOTS}")
        if not 1 <= self.hours_per_day <= 24:
            raise ValueError("hours_per_day must be between 1 and 24")


@dataclass
class RollupConfig:
    """Input caps per rollup level and the minimum usable input count."""
    max_days_per_week: int = 7
    max_days_per_month: int = 31
    max_months_per_year: int = 12
    min_inputs: int = 1

    def __post_init__(self):
        if self.min_inputs < 0:
            raise ValueError("min_inputs must not be negative")


@dataclass
class StorageConfig:
    backend_type: str = "file"  # "file" or "memory"
    data_dir: str = DEFAULT_DATA_DIR

    def __post_init__(self):
        if self.backend_type not in ("file", "memory"):
            raise ValueError(f"Unknown storage backend: {self.backend_type}")


@dataclass
class SourceConfig:
    url: str = DEFAULT_SOURCE_URL
    timeout_seconds: float = 30.0


@dataclass
class TrackerConfig:
    """Unified configuration for the tracker."""
    classifier: ClassifierConfig = None
    rollup: RollupConfig = None
    storage: StorageConfig = None
    source: SourceConfig = None

    def __post_init__(self):
        self.classifier = self.classifier or ClassifierConfig()
        self.rollup = self.rollup or RollupConfig()
        self.storage = self.storage or StorageConfig()
        self.source = self.source or SourceConfig()

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> TrackerConfig:
        """
        Build configuration from environment variables:

            TRACKER_DATA_DIR         storage directory (default ./data)
            TRACKER_STORAGE_BACKEND  file | memory
            TRACKER_SOURCE_URL       snapshot source URL
            TRACKER_ENTITY_COUNT     size of the entity id domain
            TRACKER_MIN_SNAPSHOTS    minimum hourly snapshots for a daily log
        """
        env = os.environ if environ is None else environ

        return TrackerConfig(
            classifier=ClassifierConfig(
                entity_count=int(env.get("TRACKER_ENTITY_COUNT", DEFAULT_ENTITY_COUNT)),
                min_snapshots=int(env.get("TRACKER_MIN_SNAPSHOTS", MIN_SNAPSHOTS)),
            ),
            storage=StorageConfig(
                backend_type=env.get("TRACKER_STORAGE_BACKEND", "file"),
                data_dir=env.get("TRACKER_DATA_DIR", env.get("DATA_DIR", DEFAULT_DATA_DIR)),
            ),
            source=SourceConfig(
                url=env.get("TRACKER_SOURCE_URL", DEFAULT_SOURCE_URL),
            ),
        )
