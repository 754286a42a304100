"""Tests for decoding device JSON into entities"""
import pytest

from collectors.base import DecodeError, decode_entity, decode_json
from collectors.lines import Line
from collectors.system import SystemInfo


class TestDecodeJson:
    """Zero values, unknown fields and shape errors"""

    def test_missing_fields_take_zero_values(self):
        lines = decode_json(b'[{"id": "AA1"}]', Line)

        assert lines == [Line(
            id="AA1", name="", current=0.0, current_capacity=0.0, current_status="",
            current_utilized=0.0, state="", status="",
        )]

    def test_null_fields_take_zero_values(self):
        line = decode_entity(Line, {"id": None, "current": None})

        assert line.id == ""
        assert line.current == 0.0

    def test_unknown_fields_are_ignored(self):
        lines = decode_json(b'[{"id": "AA1", "firmware_hint": 7, "extra": {"a": 1}}]', Line)

        assert lines[0].id == "AA1"

    def test_integers_become_floats(self):
        line = decode_entity(Line, {"current_capacity": 32})

        assert line.current_capacity == 32.0
        assert isinstance(line.current_capacity, float)

    def test_singleton_object(self):
        system = decode_json(b'{"firmware": "v8", "uptime": "5 seconds"}', SystemInfo, many=False)

        assert system.firmware == "v8"
        assert system.active_users == 0.0

    @pytest.mark.parametrize("raw", [
        b"",
        b"not json",
        b'{"id": "AA1"}',
        b'"lines"',
        b"[1, 2]",
        b'[{"current": "6.48"}]',
        b'[{"current": true}]',
        b'[{"name": 12}]',
        b"\xff\xfe",
    ])
    def test_shape_errors(self, raw):
        with pytest.raises(DecodeError):
            decode_json(raw, Line)

    def test_object_expected_for_singleton(self):
        with pytest.raises(DecodeError, match="expected object"):
            decode_json(b"[]", SystemInfo, many=False)
