"""
Entity Snapshot Model

Normalizes a raw capture of the collection into a uniform per-entity
record set.

NORMALIZATION RULES:
====================
- The source serves either a JSON list of records or a JSON object whose
  values are records; both are accepted.
- A boolean flag counts as set only when its raw value is literally true.
  Missing or non-boolean values are False.
- A missing owner is None.
- Records without an integer id (numeric strings accepted) are dropped,
  so the entity is "not observed" in this snapshot.
- On duplicate ids the first record wins.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional
import logging

from .base import MalformedInput

logger = logging.getLogger(__name__)


def _flag(raw: Mapping[str, Any], name: str) -> bool:
    return raw.get(name) is True


def _entity_id(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        digits = value.strip()
        if digits.isascii() and digits.isdecimal():
            return int(digits)
    return None


@dataclass(frozen=True)
class EntityRecord:
    """One entity as observed in one snapshot."""
    owner: Optional[str] = None
    listed_bbl: bool = False
    listed_boost: bool = False
    staked_daodao: bool = False
    staked_enterprise: bool = False
    broken: bool = False

    @staticmethod
    def from_raw(raw: Mapping[str, Any]) -> EntityRecord:
        owner = raw.get('owner')
        return EntityRecord(
            owner=None if owner is None else str(owner),
            listed_bbl=_flag(raw, 'bbl'),
            listed_boost=_flag(raw, 'boost'),
            staked_daodao=_flag(raw, 'daodao'),
            staked_enterprise=_flag(raw, 'enterprise'),
            broken=_flag(raw, 'broken'),
        )


@dataclass(frozen=True)
class Snapshot:
    """
    Immutable mapping of entity id -> EntityRecord captured at one instant.
    """
    records: Mapping[int, EntityRecord] = field(default_factory=dict)
    key: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'records', MappingProxyType(dict(self.records)))

    def get(self, entity_id: int) -> Optional[EntityRecord]:
        return self.records.get(entity_id)

    def __contains__(self, entity_id: int) -> bool:
        return entity_id in self.records

    def __len__(self) -> int:
        return len(self.records)

    @staticmethod
    def from_raw(raw: Any, key: Optional[str] = None) -> Snapshot:
        """Build a snapshot from the decoded source JSON."""
        if isinstance(raw, list):
            items: Iterable[Any] = raw
        elif isinstance(raw, dict):
            items = raw.values()
        else:
            raise MalformedInput(
                f"Snapshot payload must be a list or object, got {type(raw).__name__}",
                key=key,
            )

        records = {}
        dropped = 0
        for item in items:
            if not isinstance(item, dict):
                dropped += 1
                continue
            entity_id = _entity_id(item.get('id'))
            if entity_id is None:
                dropped += 1
                continue
            if entity_id not in records:
                records[entity_id] = EntityRecord.from_raw(item)

        if dropped:
            logger.debug("Snapshot %s: dropped %d records without a usable id", key, dropped)
        return Snapshot(records=records, key=key)
