import json

import pytest

from pengines.events import EventKind, decode_event
from pengines.exceptions import TransportError


def raw(**payload):
    return json.dumps(payload)


@pytest.mark.unit
class TestDecodeEvent:
    def test_success_is_data(self):
        event = decode_event(raw(event="success", id="p1", data=[{"X": 1}, {"X": 2}], more=True))
        assert event.kind is EventKind.DATA
        assert event.session_id == "p1"
        assert event.records == [{"X": 1}, {"X": 2}]
        assert event.more is True

    def test_success_without_more_defaults_to_last(self):
        event = decode_event(raw(event="success", id="p1", data=[{"X": 1}]))
        assert event.more is False

    @pytest.mark.parametrize("name", ["failure", "stop"])
    def test_end_of_answers(self, name):
        event = decode_event(raw(event=name, id="p1"))
        assert event.kind is EventKind.NO_MORE_DATA

    def test_error_carries_message_and_code(self):
        event = decode_event(
            raw(event="error", id="p1", data="Unknown procedure: foo/0", code="existence_error")
        )
        assert event.kind is EventKind.ERROR
        assert event.message == "Unknown procedure: foo/0"
        assert event.code == "existence_error"

    def test_died_is_an_error(self):
        event = decode_event(raw(event="died", id="p1"))
        assert event.kind is EventKind.ERROR
        assert "died" in event.message

    def test_create_with_nested_answer(self):
        event = decode_event(
            raw(
                event="create",
                id="p1",
                slave_limit=3,
                answer={"event": "success", "id": "p1", "data": [{"X": 1}], "more": False},
            )
        )
        assert event.kind is EventKind.CREATE
        assert event.slave_limit == 3
        assert event.nested.kind is EventKind.DATA
        assert event.nested.records == [{"X": 1}]

    def test_destroy_wrapping_final_answer(self):
        event = decode_event(
            raw(event="destroy", id="p1", data={"event": "failure", "id": "p1"})
        )
        assert event.kind is EventKind.DESTROY
        assert event.nested.kind is EventKind.NO_MORE_DATA

    @pytest.mark.parametrize("name", ["output", "prompt", "ping"])
    def test_other_events(self, name):
        event = decode_event(raw(event=name, id="p1", data="hi"))
        assert event.kind is EventKind.OTHER

    @pytest.mark.parametrize(
        "reply",
        ["not json", "[1, 2]", '{"id": "p1"}', '{"event": "success", "data": [1]}'],
    )
    def test_malformed_replies(self, reply):
        with pytest.raises(TransportError):
            decode_event(reply)
