"""
Base Contracts and Shared Types

Foundational types used across all layers: error data, the typed
exceptions that carry it, and the artifact levels of the rollup hierarchy.

BOUNDARY ENFORCEMENT:
=====================
- This module has no dependencies on any other tracker module
- All data types are frozen dataclasses
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Dict, Optional, Tuple


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    """
    NOT_FOUND = auto()
    INSUFFICIENT_DATA = auto()
    MALFORMED_INPUT = auto()
    WRITE_FAILURE = auto()
    SOURCE_UNREACHABLE = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data - they can be logged, stored and returned over HTTP.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str, **context: object) -> Error:
        return Error(
            code=code,
            message=message,
            timestamp=datetime.now(timezone.utc),
            context=tuple((k, str(v)) for k, v in context.items()),
        )

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            'code': self.code.name,
            'message': self.message,
            'timestamp': self.timestamp.isoformat(),
            'context': dict(self.context),
        }


class TrackerError(Exception):
    """Base exception. Always carries an Error describing the failure."""

    code = ErrorCode.MALFORMED_INPUT

    def __init__(self, message: str, **context: object):
        super().__init__(message)
        self.error = Error.create(self.code, message, **context)


class NotFound(TrackerError):
    """A requested snapshot or event log artifact does not exist."""
    code = ErrorCode.NOT_FOUND


class InsufficientData(TrackerError):
    """Fewer usable inputs than the configured minimum."""
    code = ErrorCode.INSUFFICIENT_DATA


class MalformedInput(TrackerError):
    """A loaded artifact or supplied key does not have the expected shape."""
    code = ErrorCode.MALFORMED_INPUT


class WriteFailure(TrackerError):
    """Persisting an artifact failed."""
    code = ErrorCode.WRITE_FAILURE


class SourceUnavailable(TrackerError):
    """The upstream snapshot source could not be read."""
    code = ErrorCode.SOURCE_UNREACHABLE


# =============================================================================
# ARTIFACT LEVELS
# =============================================================================

class Level(Enum):
    """Levels of the artifact hierarchy. Values double as directory names."""
    SNAPSHOTS = "snapshots"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @staticmethod
    def parse(value: str) -> Level:
        try:
            return Level(value)
        except ValueError:
            raise MalformedInput(f"Unknown artifact level: {value!r}", level=value) from None


# =============================================================================
# WRITE RESULTS
# =============================================================================

@dataclass(frozen=True)
class StorageWriteResult:
    """Outcome of a save. Writes report failure here rather than raising."""
    success: bool
    level: Optional[Level] = None
    key: Optional[str] = None
    error: Optional[Error] = None

    @staticmethod
    def ok(level: Level, key: str) -> StorageWriteResult:
        return StorageWriteResult(success=True, level=level, key=key)

    @staticmethod
    def failed(level: Level, key: str, exc: Exception) -> StorageWriteResult:
        return StorageWriteResult(
            success=False,
            level=level,
            key=key,
            error=Error.create(
                ErrorCode.WRITE_FAILURE,
                f"Failed to write {level.value}/{key}: {exc}",
                level=level.value,
                key=key,
            ),
        )
