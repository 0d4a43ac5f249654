"""
Event Contracts

The closed set of activity events the classifier can emit. Each kind is
its own frozen dataclass carrying only the attributes relevant to it.

SERIALIZED FORM:
================
Every event serializes to a JSON object with a "type" discriminator and,
when known, the integer "hour" position it was detected at:

    {"type": "sale", "marketplace": "bbl", "from": "a", "to": "b", "hour": 3}
    {"type": "transfer", "from": "a", "to": "b", "hour": 3}
    {"type": "listing", "marketplace": "boost", "hour": 3}
    {"type": "delisting", "marketplace": "boost", "hour": 3}
    {"type": "stake", "protocol": "daodao", "hour": 3}
    {"type": "unstake", "protocol": "enterprise", "hour": 3}
    {"type": "break_change", "from": false, "to": true, "hour": 3}

Hour offsets are relative to the daily window they were detected in and
are carried verbatim through every rollup.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Tuple, Union

from .base import MalformedInput


class Marketplace(Enum):
    BBL = "bbl"
    BOOST = "boost"


class Protocol(Enum):
    DAODAO = "daodao"
    ENTERPRISE = "enterprise"


# Summary counters in serialized order. total_events is kept separately.
COUNTER_NAMES: Tuple[str, ...] = (
    'bbl_sales',
    'boost_sales',
    'transfers',
    'bbl_listings',
    'bbl_delistings',
    'boost_listings',
    'boost_delistings',
    'daodao_stakes',
    'daodao_unstakes',
    'enterprise_stakes',
    'enterprise_unstakes',
    'breaks',
)


def _with_hour(body: Dict[str, Any], hour: Optional[int]) -> Dict[str, Any]:
    if hour is not None:
        body['hour'] = hour
    return body


@dataclass(frozen=True)
class Sale:
    """Ownership change while the entity was listed on a marketplace."""
    type: ClassVar[str] = "sale"
    marketplace: Marketplace
    from_owner: Optional[str]
    to_owner: Optional[str]
    hour: Optional[int] = None

    @property
    def counter(self) -> str:
        return f"{self.marketplace.value}_sales"

    def to_dict(self) -> Dict[str, Any]:
        return _with_hour({
            'type': self.type,
            'marketplace': self.marketplace.value,
            'from': self.from_owner,
            'to': self.to_owner,
        }, self.hour)


@dataclass(frozen=True)
class Transfer:
    """Ownership change while unlisted."""
    type: ClassVar[str] = "transfer"
    from_owner: Optional[str]
    to_owner: Optional[str]
    hour: Optional[int] = None

    counter: ClassVar[str] = "transfers"

    def to_dict(self) -> Dict[str, Any]:
        return _with_hour({
            'type': self.type,
            'from': self.from_owner,
            'to': self.to_owner,
        }, self.hour)


@dataclass(frozen=True)
class Listing:
    type: ClassVar[str] = "listing"
    marketplace: Marketplace
    hour: Optional[int] = None

    @property
    def counter(self) -> str:
        return f"{self.marketplace.value}_listings"

    def to_dict(self) -> Dict[str, Any]:
        return _with_hour({'type': self.type, 'marketplace': self.marketplace.value}, self.hour)


@dataclass(frozen=True)
class Delisting:
    type: ClassVar[str] = "delisting"
    marketplace: Marketplace
    hour: Optional[int] = None

    @property
    def counter(self) -> str:
        return f"{self.marketplace.value}_delistings"

    def to_dict(self) -> Dict[str, Any]:
        return _with_hour({'type': self.type, 'marketplace': self.marketplace.value}, self.hour)


@dataclass(frozen=True)
class Stake:
    type: ClassVar[str] = "stake"
    protocol: Protocol
    hour: Optional[int] = None

    @property
    def counter(self) -> str:
        return f"{self.protocol.value}_stakes"

    def to_dict(self) -> Dict[str, Any]:
        return _with_hour({'type': self.type, 'protocol': self.protocol.value}, self.hour)


@dataclass(frozen=True)
class Unstake:
    type: ClassVar[str] = "unstake"
    protocol: Protocol
    hour: Optional[int] = None

    @property
    def counter(self) -> str:
        return f"{self.protocol.value}_unstakes"

    def to_dict(self) -> Dict[str, Any]:
        return _with_hour({'type': self.type, 'protocol': self.protocol.value}, self.hour)


@dataclass(frozen=True)
class BreakChange:
    """Condition flag flipped."""
    type: ClassVar[str] = "break_change"
    from_value: bool
    to_value: bool
    hour: Optional[int] = None

    counter: ClassVar[str] = "breaks"

    def to_dict(self) -> Dict[str, Any]:
        return _with_hour({
            'type': self.type,
            'from': self.from_value,
            'to': self.to_value,
        }, self.hour)


Event = Union[Sale, Transfer, Listing, Delisting, Stake, Unstake, BreakChange]


# =============================================================================
# DESERIALIZATION
# =============================================================================

def _require(data: Mapping[str, Any], name: str) -> Any:
    if name not in data:
        raise MalformedInput(f"Event of type {data.get('type')!r} is missing {name!r}")
    return data[name]


def _hour(data: Mapping[str, Any]) -> Optional[int]:
    hour = data.get('hour')
    if hour is None:
        return None
    if isinstance(hour, bool) or not isinstance(hour, int):
        raise MalformedInput(f"Event hour must be an integer, got {hour!r}")
    return hour


def _enum(enum_type, value: Any):
    if not isinstance(value, str):
        raise MalformedInput(f"{enum_type.__name__} must be a string, got {value!r}")
    try:
        return enum_type(value)
    except ValueError:
        raise MalformedInput(f"Unknown {enum_type.__name__.lower()}: {value!r}") from None


def _owner(data: Mapping[str, Any], name: str) -> Optional[str]:
    value = _require(data, name)
    if value is not None and not isinstance(value, str):
        raise MalformedInput(f"Owner {name!r} must be a string or null, got {value!r}")
    return value


def _flag(value: Any) -> bool:
    if not isinstance(value, bool):
        raise MalformedInput(f"break_change values must be booleans, got {value!r}")
    return value


_DECODERS: Dict[str, Callable[[Mapping[str, Any]], Event]] = {
    Sale.type: lambda d: Sale(
        marketplace=_enum(Marketplace, _require(d, 'marketplace')),
        from_owner=_owner(d, 'from'),
        to_owner=_owner(d, 'to'),
        hour=_hour(d),
    ),
    Transfer.type: lambda d: Transfer(
        from_owner=_owner(d, 'from'),
        to_owner=_owner(d, 'to'),
        hour=_hour(d),
    ),
    Listing.type: lambda d: Listing(
        marketplace=_enum(Marketplace, _require(d, 'marketplace')), hour=_hour(d)),
    Delisting.type: lambda d: Delisting(
        marketplace=_enum(Marketplace, _require(d, 'marketplace')), hour=_hour(d)),
    Stake.type: lambda d: Stake(
        protocol=_enum(Protocol, _require(d, 'protocol')), hour=_hour(d)),
    Unstake.type: lambda d: Unstake(
        protocol=_enum(Protocol, _require(d, 'protocol')), hour=_hour(d)),
    BreakChange.type: lambda d: BreakChange(
        from_value=_flag(_require(d, 'from')),
        to_value=_flag(_require(d, 'to')),
        hour=_hour(d),
    ),
}


def event_from_dict(data: Any) -> Event:
    """Decode one serialized event. Raises MalformedInput on bad shape."""
    if not isinstance(data, dict):
        raise MalformedInput(f"Event must be an object, got {type(data).__name__}")
    event_type = data.get('type')
    decoder = _DECODERS.get(event_type) if isinstance(event_type, str) else None
    if decoder is None:
        raise MalformedInput(f"Unknown event type: {event_type!r}")
    return decoder(data)
