"""
Artifact Storage Layer

RESPONSIBILITY: Load and save JSON artifacts by level and period key
ALLOWED INPUTS: Raw snapshot payloads, EventLogs
OUTPUTS: Snapshot, EventLog, StorageWriteResult

WHAT THIS LAYER MUST NOT DO:
============================
- Detect events or compute rollups
- Decide which artifacts belong to a period

ERROR CONTRACT:
===============
- Loads raise NotFound (artifact absent) or MalformedInput (unparseable)
- Saves never raise; failures come back in StorageWriteResult.error
- Saves overwrite: a period key holds exactly one artifact
"""

from __future__ import annotations
from typing import Any, Dict, List
import json
import logging
import os
import re
import tempfile

from ..config import StorageConfig
from ..contracts.base import (
    Level, MalformedInput, NotFound, StorageWriteResult,
)
from ..contracts.snapshot import Snapshot
from ..domain.serialization import dumps
from ..temporal.event_log import EventLog

logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r'^[0-9A-Za-z][0-9A-Za-z-]*$')


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not _KEY_RE.match(key):
        raise MalformedInput(f"Invalid artifact key: {key!r}", key=key)


# =============================================================================
# STORAGE INTERFACE
# =============================================================================

class ArtifactStore:
    """
    Abstract artifact store.

    Implementations provide load_raw / save_raw / list_keys; the typed
    snapshot and event-log accessors are shared.
    """

    def load_raw(self, level: Level, key: str) -> Any:
        """Return the decoded JSON stored under level/key."""
        raise NotImplementedError

    def save_raw(self, level: Level, key: str, data: Any) -> StorageWriteResult:
        """Store data under level/key, replacing any previous artifact."""
        raise NotImplementedError

    def list_keys(self, level: Level) -> List[str]:
        """All keys stored at a level, ascending."""
        raise NotImplementedError

    def count(self, level: Level) -> int:
        return len(self.list_keys(level))

    def load_snapshot(self, key: str) -> Snapshot:
        return Snapshot.from_raw(self.load_raw(Level.SNAPSHOTS, key), key=key)

    def save_snapshot(self, key: str, raw: Any) -> StorageWriteResult:
        return self.save_raw(Level.SNAPSHOTS, key, raw)

    def load_event_log(self, level: Level, key: str) -> EventLog:
        data = self.load_raw(level, key)
        try:
            return EventLog.from_dict(data)
        except MalformedInput as e:
            raise MalformedInput(
                f"{level.value}/{key} is not a valid event log: {e}",
                level=level.value,
                key=key,
            ) from e

    def save_event_log(self, level: Level, key: str, log: EventLog) -> StorageWriteResult:
        return self.save_raw(level, key, log.to_dict())


# =============================================================================
# IN-MEMORY STORAGE (Reference Implementation)
# =============================================================================

class InMemoryArtifactStore(ArtifactStore):
    """
    Keeps artifacts as serialized JSON text so loads behave like the file
    store (fresh objects, same parse errors).
    """

    def __init__(self):
        self._artifacts: Dict[Level, Dict[str, str]] = {level: {} for level in Level}

    def load_raw(self, level: Level, key: str) -> Any:
        _check_key(key)
        text = self._artifacts[level].get(key)
        if text is None:
            raise NotFound(f"No {level.value} artifact for {key}", level=level.value, key=key)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedInput(f"{level.value}/{key} is not valid JSON: {e}",
                                 level=level.value, key=key) from e

    def save_raw(self, level: Level, key: str, data: Any) -> StorageWriteResult:
        try:
            _check_key(key)
            self._artifacts[level][key] = dumps(data)
        except (MalformedInput, TypeError, ValueError) as e:
            return StorageWriteResult.failed(level, key, e)
        return StorageWriteResult.ok(level, key)

    def put_text(self, level: Level, key: str, text: str) -> None:
        """Store raw text verbatim (used to simulate corrupt artifacts)."""
        self._artifacts[level][key] = text

    def list_keys(self, level: Level) -> List[str]:
        return sorted(self._artifacts[level])


# =============================================================================
# FILE-BASED STORAGE
# =============================================================================

class FileArtifactStore(ArtifactStore):
    """
    One directory per level, one <key>.json per artifact.

    Writes go to a temporary file in the same directory which then replaces
    the target, so readers never observe a half-written artifact.
    """

    def __init__(self, data_dir: str):
        self._data_dir = data_dir
        self._ensure_directories()

    @property
    def data_dir(self) -> str:
        return self._data_dir

    def _ensure_directories(self):
        for level in Level:
            os.makedirs(os.path.join(self._data_dir, level.value), exist_ok=True)

    def path_for(self, level: Level, key: str) -> str:
        _check_key(key)
        return os.path.join(self._data_dir, level.value, f"{key}.json")

    def load_raw(self, level: Level, key: str) -> Any:
        path = self.path_for(level, key)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except FileNotFoundError:
            raise NotFound(f"No {level.value} artifact for {key}",
                           level=level.value, key=key) from None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedInput(f"{level.value}/{key} is not valid JSON: {e}",
                                 level=level.value, key=key) from e

    def save_raw(self, level: Level, key: str, data: Any) -> StorageWriteResult:
        try:
            path = self.path_for(level, key)
            text = dumps(data)
            fd, tmp_path = tempfile.mkstemp(
                dir=os.path.dirname(path), prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(text)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (MalformedInput, OSError, TypeError, ValueError) as e:
            logger.error("Write failed for %s/%s: %s", level.value, key, e)
            return StorageWriteResult.failed(level, key, e)

        logger.info("Saved %s/%s.json", level.value, key)
        return StorageWriteResult.ok(level, key)

    def list_keys(self, level: Level) -> List[str]:
        directory = os.path.join(self._data_dir, level.value)
        if not os.path.isdir(directory):
            return []
        return sorted(
            name[:-len('.json')]
            for name in os.listdir(directory)
            if name.endswith('.json') and not name.startswith('.')
        )


def create_store(config: StorageConfig) -> ArtifactStore:
    if config.backend_type == "file":
        return FileArtifactStore(config.data_dir)
    return InMemoryArtifactStore()
