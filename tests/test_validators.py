"""Unit tests for input normalization and serial line parsing."""

import pytest

from authintegrate.utils.exceptions import InvalidEventError
from authintegrate.utils.validators import (
    format_validation_errors,
    is_six_digit_pin,
    normalize_outcome,
    parse_serial_line,
    truncate_note,
)


class TestHelpers:
    @pytest.mark.parametrize(
        "raw, expected",
        [("GRANTED", "GRANTED"), (" granted ", "GRANTED"), ("registered", "REGISTERED"), ("maybe", "DENIED"), (None, "DENIED")],
    )
    def test_normalize_outcome(self, raw, expected):
        assert normalize_outcome(raw) == expected

    def test_truncate_note(self):
        assert truncate_note("x" * 150) == "x" * 100
        assert truncate_note("   ") is None
        assert truncate_note(None) is None

    def test_six_digit_pin(self):
        assert is_six_digit_pin("123456")
        assert not is_six_digit_pin("12345")
        assert not is_six_digit_pin("12345a")
        assert not is_six_digit_pin(None)

    def test_format_validation_errors_drops_body_prefix(self):
        errors = [{"loc": ("body", "userId"), "msg": "Field required"}]
        assert format_validation_errors(errors) == "userId: Field required"
        assert format_validation_errors([]) == "Invalid request"


class TestParseSerialLine:
    def test_text_reg_with_pin(self):
        event = parse_serial_line("REG,5,55,123456")
        assert event.command == "REG"
        assert (event.userId, event.fingerId) == (5, 55)
        assert event.password == "123456"
        assert event.result == "REGISTERED"

    def test_text_login_note_keeps_commas(self):
        event = parse_serial_line("login,7,granted,door A, side entrance")
        assert event.command == "LOGIN"
        assert event.userId == 7
        assert event.result == "GRANTED"
        assert event.note == "door A, side entrance"

    def test_text_login_unknown_outcome_is_denied(self):
        assert parse_serial_line("LOGIN,7,BOGUS").result == "DENIED"

    def test_json_line(self):
        event = parse_serial_line('{"command": "login", "userId": 3, "result": "granted"}')
        assert event.command == "LOGIN"
        assert event.result == "GRANTED"

    @pytest.mark.parametrize(
        "line",
        ["", "   ", "REG,5", "LOGIN", "LOGIN,abc", "OPEN,1", "{not json", "[1, 2]", '{"command": "LOGIN"}'],
    )
    def test_rejects_malformed(self, line):
        with pytest.raises(InvalidEventError):
            parse_serial_line(line)
