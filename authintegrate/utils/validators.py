# =======================================================================================
# authintegrate/utils/validators.py - Validation Helpers
# =======================================================================================
import json
import re
from typing import Any, Dict, Optional, Sequence

from pydantic import ValidationError

from .exceptions import InvalidEventError
from ..models.enums import ACCESS_RESULTS, NOTE_MAX_LENGTH, AccessResult
from ..models.schemas import HardwareEventRequest

_PIN_RE = re.compile(r"^\d{6}$")


def format_validation_errors(errors: Sequence[Dict[str, Any]]) -> str:
    """Flatten pydantic error dicts into one human-readable line."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "Invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request"


def normalize_outcome(value: Optional[str]) -> AccessResult:
    """Map a raw outcome token to an access result; anything unrecognised is DENIED."""
    if value is None:
        return "DENIED"
    token = str(value).strip().upper()
    return token if token in ACCESS_RESULTS else "DENIED"


def truncate_note(note: Optional[str]) -> Optional[str]:
    if note is None:
        return None
    note = note.strip()
    return note[:NOTE_MAX_LENGTH] if note else None


def is_six_digit_pin(password: Optional[str]) -> bool:
    return bool(password) and bool(_PIN_RE.match(password))


def _parse_int(value: str, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidEventError(f"{field} must be an integer, got {value!r}")


def _parse_text_line(line: str) -> Dict[str, Any]:
    """
    Comma separated device lines:

        REG,<userId>,<fingerId>[,<pin>]
        LOGIN,<userId>[,<outcome>[,<note>]]

    The note is the remainder of the line and may itself contain commas.
    """
    parts = [p.strip() for p in line.split(",", 3)]
    command = parts[0].upper()

    if command == "REG":
        if len(parts) < 3:
            raise InvalidEventError("REG line needs userId and fingerId")
        payload = {
            "command": "REG",
            "userId": _parse_int(parts[1], "userId"),
            "fingerId": _parse_int(parts[2], "fingerId"),
            "result": "REGISTERED",
        }
        if len(parts) > 3 and parts[3]:
            payload["password"] = parts[3]
        return payload

    if command == "LOGIN":
        if len(parts) < 2:
            raise InvalidEventError("LOGIN line needs userId")
        payload = {"command": "LOGIN", "userId": _parse_int(parts[1], "userId")}
        if len(parts) > 2 and parts[2]:
            payload["result"] = parts[2]
        if len(parts) > 3 and parts[3]:
            payload["note"] = parts[3]
        return payload

    raise InvalidEventError(f"Unknown hardware command {parts[0]!r}")


def parse_serial_line(line: str) -> HardwareEventRequest:
    """
    Turn one line read from the serial bridge into a hardware event.

    Accepts either a JSON object with the HTTP body shape or the comma
    separated text form. Outcome tokens are lenient here (unknown -> DENIED)
    because the device cannot be told about a rejected line.
    Raises InvalidEventError on anything else.
    """
    line = (line or "").strip()
    if not line:
        raise InvalidEventError("Empty line")

    if line.startswith("{"):
        try:
            payload = json.loads(line)
        except ValueError as e:
            raise InvalidEventError(f"Invalid JSON: {e}")
        if not isinstance(payload, dict):
            raise InvalidEventError("JSON line must be an object")
        if isinstance(payload.get("command"), str):
            payload["command"] = payload["command"].strip().upper()
    else:
        payload = _parse_text_line(line)

    if payload.get("result") is not None:
        payload["result"] = normalize_outcome(payload["result"])

    try:
        return HardwareEventRequest.model_validate(payload)
    except ValidationError as e:
        raise InvalidEventError(format_validation_errors(e.errors()))
