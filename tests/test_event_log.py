"""
Event Log Contract Tests
========================

Serialized shape, parsing and rejection of malformed artifacts.
"""

import json

import pytest

from tracker.contracts.base import MalformedInput
from tracker.contracts.events import (
    Marketplace, Protocol, Sale, Transfer, Stake, BreakChange, event_from_dict,
)
from tracker.domain.serialization import dumps
from tracker.temporal.event_log import EventLog, EventSummary

from .fixtures import SAMPLE_A, log_with


class TestSerializedShape:

    def test_top_level_fields(self):
        data = SAMPLE_A.to_dict()
        assert set(data) == {'summary', 'activity_log'}
        assert data['summary']['total_events'] == 3
        assert data['summary']['bbl_sales'] == 1
        assert data['summary']['bbl_delistings'] == 1
        assert data['summary']['daodao_stakes'] == 1
        assert list(data['activity_log']) == ['7', '42']

    def test_event_shapes(self):
        assert Sale(Marketplace.BOOST, "a", "b", hour=4).to_dict() == {
            'type': 'sale', 'marketplace': 'boost', 'from': 'a', 'to': 'b', 'hour': 4,
        }
        assert Transfer("a", "b", hour=2).to_dict() == {
            'type': 'transfer', 'from': 'a', 'to': 'b', 'hour': 2,
        }
        assert Stake(Protocol.ENTERPRISE, hour=1).to_dict() == {
            'type': 'stake', 'protocol': 'enterprise', 'hour': 1,
        }
        assert BreakChange(True, False, hour=7).to_dict() == {
            'type': 'break_change', 'from': True, 'to': False, 'hour': 7,
        }

    def test_hour_omitted_when_unknown(self):
        assert 'hour' not in Transfer("a", "b").to_dict()

    def test_entities_serialized_in_id_order(self):
        log = log_with({
            100: [Transfer("a", "b", hour=1)],
            2: [Transfer("c", "d", hour=1)],
            15: [Transfer("e", "f", hour=1)],
        })
        assert list(log.to_dict()['activity_log']) == ['2', '15', '100']

    def test_parse_back(self):
        text = dumps(SAMPLE_A)
        parsed = EventLog.from_dict(json.loads(text))
        assert parsed == SAMPLE_A
        assert parsed.activity_log[7][0] == Sale(Marketplace.BBL, "alice", "bob", hour=3)


class TestMalformed:

    def _valid(self):
        return SAMPLE_A.to_dict()

    def test_missing_activity_log(self):
        data = self._valid()
        del data['activity_log']
        with pytest.raises(MalformedInput):
            EventLog.from_dict(data)

    def test_unknown_counter(self):
        data = self._valid()
        data['summary']['mints'] = 0
        with pytest.raises(MalformedInput):
            EventLog.from_dict(data)

    def test_negative_counter(self):
        data = self._valid()
        data['summary']['breaks'] = -1
        with pytest.raises(MalformedInput):
            EventLog.from_dict(data)

    def test_total_mismatch(self):
        data = self._valid()
        data['summary']['total_events'] = 4
        with pytest.raises(MalformedInput):
            EventLog.from_dict(data)

    def test_event_count_mismatch(self):
        data = self._valid()
        data['activity_log']['42'] = []
        with pytest.raises(MalformedInput):
            EventLog.from_dict(data)

    def test_non_integer_entity_key(self):
        data = self._valid()
        data['activity_log']['seven'] = data['activity_log'].pop('7')
        with pytest.raises(MalformedInput):
            EventLog.from_dict(data)

    def test_unknown_event_type(self):
        with pytest.raises(MalformedInput):
            event_from_dict({'type': 'burn', 'hour': 1})

    def test_event_missing_attribute(self):
        with pytest.raises(MalformedInput):
            event_from_dict({'type': 'listing', 'hour': 1})

    def test_unknown_marketplace(self):
        with pytest.raises(MalformedInput):
            event_from_dict({'type': 'listing', 'marketplace': 'opensea', 'hour': 1})


class TestSparseMap:

    def test_empty_lists_dropped_on_parse(self):
        data = {
            'summary': EventSummary().to_dict(),
            'activity_log': {'5': []},
        }
        log = EventLog.from_dict(data)
        assert 5 not in log.activity_log

    def test_empty_log(self):
        log = EventLog.empty()
        assert log.total_events == 0
        assert log.to_dict()['activity_log'] == {}
        assert log.is_consistent()

    def test_log_is_read_only(self):
        with pytest.raises(TypeError):
            SAMPLE_A.activity_log[1] = ()


class TestStrictDecoding:

    def _valid(self):
        return SAMPLE_A.to_dict()

    @pytest.mark.parametrize("event_type", [[], {}, 3, None])
    def test_non_string_event_type(self, event_type):
        with pytest.raises(MalformedInput):
            event_from_dict({'type': event_type, 'hour': 1})

    def test_non_string_marketplace(self):
        with pytest.raises(MalformedInput):
            event_from_dict({'type': 'listing', 'marketplace': ['bbl'], 'hour': 1})

    def test_non_string_owner(self):
        with pytest.raises(MalformedInput):
            event_from_dict({'type': 'transfer', 'from': {'name': "a"}, 'to': "b", 'hour': 1})

    def test_null_owner_allowed(self):
        assert event_from_dict({'type': 'transfer', 'from': None, 'to': "b", 'hour': 1}) == Transfer(None, "b", hour=1)

    @pytest.mark.parametrize("key", ["+7", " 7", "07", "7_0", "\u0667"])
    def test_non_canonical_entity_key(self, key):
        data = self._valid()
        data['activity_log'][key] = data['activity_log'].pop('7')
        with pytest.raises(MalformedInput):
            EventLog.from_dict(data)

    def test_counter_split_must_match_events(self):
        data = self._valid()
        data['summary']['daodao_stakes'] = 0
        data['summary']['enterprise_stakes'] = 1
        with pytest.raises(MalformedInput) as excinfo:
            EventLog.from_dict(data)
        assert 'daodao_stakes' in str(excinfo.value)


class TestDumps:

    def test_contracts_serialize_through_to_dict(self):
        assert json.loads(dumps(SAMPLE_A)) == SAMPLE_A.to_dict()

    def test_plain_payload_passthrough(self):
        assert json.loads(dumps([{'id': 1, 'owner': "ä"}])) == [{'id': 1, 'owner': "ä"}]

    def test_unsupported_object_rejected(self):
        with pytest.raises(TypeError):
            dumps({'when': object()})
