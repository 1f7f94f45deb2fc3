"""
JSON wire forms shared by the routing record types.

Durations travel as Go-style duration strings (``"24h0m0s"``), timestamps as
Unix milliseconds, and CIDs, peer IDs and multiaddrs as their canonical
string forms.
"""

from datetime import (
    datetime,
    timedelta,
    timezone,
)
from decimal import (
    Decimal,
    InvalidOperation,
)
import json
import re
from typing import (
    Any,
)

import multiaddr

from delegated_routing.cid import (
    CID,
    InvalidCIDError,
)
from delegated_routing.peer.id import (
    ID,
)

from .exceptions import (
    RecordDecodeError,
)

_UNIT_MICROSECONDS = {
    "ns": Decimal("0.001"),
    "us": Decimal(1),
    "µs": Decimal(1),  # U+00B5 micro sign
    "μs": Decimal(1),  # U+03BC Greek mu
    "ms": Decimal(1_000),
    "s": Decimal(1_000_000),
    "m": Decimal(60_000_000),
    "h": Decimal(3_600_000_000),
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_MICROS_PER_SECOND = 1_000_000
_MICROS_PER_MINUTE = 60 * _MICROS_PER_SECOND
_MICROS_PER_HOUR = 60 * _MICROS_PER_MINUTE


def _total_microseconds(d: timedelta) -> int:
    return (d.days * 86_400 + d.seconds) * _MICROS_PER_SECOND + d.microseconds


def _fixed_point(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{frac:0{digits}d}".rstrip("0")


def format_duration(d: timedelta) -> str:
    """Render ``d`` the way Go's ``time.Duration.String`` does."""
    micros = _total_microseconds(d)
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)

    if micros < 1_000:
        return f"{sign}{micros}µs"
    if micros < _MICROS_PER_SECOND:
        return f"{sign}{_fixed_point(micros, 1_000)}ms"

    hours, rest = divmod(micros, _MICROS_PER_HOUR)
    minutes, rest = divmod(rest, _MICROS_PER_MINUTE)
    seconds = _fixed_point(rest, _MICROS_PER_SECOND)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def parse_duration(value: str) -> timedelta:
    """
    Parse a Go duration string such as ``"1h30m"`` or ``"-1.5s"``.

    Sub-microsecond precision is truncated.
    """
    if not isinstance(value, str):
        raise RecordDecodeError(f"duration must be a string, got {value!r}")

    text = value
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise RecordDecodeError(f"invalid duration {value!r}")

    total = Decimal(0)
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise RecordDecodeError(f"invalid duration {value!r}")
        try:
            total += Decimal(match.group(1)) * _UNIT_MICROSECONDS[match.group(2)]
        except InvalidOperation as e:
            raise RecordDecodeError(f"invalid duration {value!r}") from e
        pos = match.end()
    try:
        return timedelta(microseconds=sign * int(total))
    except OverflowError as e:
        raise RecordDecodeError(f"duration {value!r} out of range") from e


def format_time(t: datetime) -> int:
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    return _total_microseconds(t - _EPOCH) // 1_000


def parse_time(value: Any) -> datetime:
    if isinstance(value, bool) or not isinstance(value, int):
        raise RecordDecodeError(f"timestamp must be Unix milliseconds, got {value!r}")
    try:
        return _EPOCH + timedelta(milliseconds=value)
    except OverflowError as e:
        raise RecordDecodeError(f"timestamp {value} out of range") from e


def parse_cid(value: Any) -> CID:
    if not isinstance(value, str):
        raise RecordDecodeError(f"CID must be a string, got {value!r}")
    try:
        return CID.from_string(value)
    except (InvalidCIDError, ValueError) as e:
        raise RecordDecodeError(str(e)) from e


def parse_peer_id(value: Any) -> ID:
    if not isinstance(value, str):
        raise RecordDecodeError(f"peer ID must be a string, got {value!r}")
    try:
        return ID.from_base58(value)
    except ValueError as e:
        raise RecordDecodeError(str(e)) from e


def parse_multiaddr(value: Any) -> multiaddr.Multiaddr:
    if not isinstance(value, str):
        raise RecordDecodeError(f"multiaddr must be a string, got {value!r}")
    try:
        return multiaddr.Multiaddr(value)
    except Exception as e:
        raise RecordDecodeError(f"invalid multiaddr {value!r}: {e}") from e


def parse_list(value: Any, item_parser: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise RecordDecodeError(f"expected a list, got {value!r}")
    return [item_parser(item) for item in value]


def optional(value: Any, parser: Any) -> Any:
    return None if value is None else parser(value)


def load_object(data: bytes) -> dict[str, Any]:
    """Decode ``data`` as a JSON object."""
    try:
        obj = json.loads(data)
    except ValueError as e:
        raise RecordDecodeError(f"invalid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise RecordDecodeError(f"expected a JSON object, got {type(obj).__name__}")
    return obj


def marshal_json_bytes(obj: Any) -> bytes:
    """
    Serialize ``obj`` deterministically.

    Keys are sorted and no insignificant whitespace is emitted, so equal
    values always produce identical bytes; signatures over payloads depend
    on this.
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


_RAW_DECODER = json.JSONDecoder()


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise RecordDecodeError(f"invalid UTF-8: {e}") from e


def _skip_whitespace(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in " \t\n\r":
        pos += 1
    return pos


def _raw_value(text: str, pos: int) -> int:
    try:
        _, end = _RAW_DECODER.raw_decode(text, pos)
    except json.JSONDecodeError as e:
        raise RecordDecodeError(f"invalid JSON: {e}") from e
    return end


def raw_members(data: bytes) -> dict[str, bytes]:
    """
    Split a JSON object into its members without re-encoding them.

    Each value is returned as the exact bytes it occupied in ``data``, so
    signed payloads and unknown records can be passed through untouched.
    """
    text = _decode_text(data)
    pos = _skip_whitespace(text, 0)
    if text[pos : pos + 1] != "{":
        raise RecordDecodeError("expected a JSON object")
    members: dict[str, bytes] = {}
    pos = _skip_whitespace(text, pos + 1)
    if text[pos : pos + 1] == "}":
        pos += 1
    else:
        while True:
            if text[pos : pos + 1] != '"':
                raise RecordDecodeError(f"expected object key at offset {pos}")
            key_end = _raw_value(text, pos)
            key = json.loads(text[pos:key_end])
            pos = _skip_whitespace(text, key_end)
            if text[pos : pos + 1] != ":":
                raise RecordDecodeError(f"expected ':' at offset {pos}")
            pos = _skip_whitespace(text, pos + 1)
            end = _raw_value(text, pos)
            members[key] = text[pos:end].encode("utf-8")
            pos = _skip_whitespace(text, end)
            delimiter = text[pos : pos + 1]
            pos = _skip_whitespace(text, pos + 1)
            if delimiter == "}":
                break
            if delimiter != ",":
                raise RecordDecodeError(f"expected ',' or '}}' at offset {pos}")
    if _skip_whitespace(text, pos) != len(text):
        raise RecordDecodeError("unexpected data after JSON object")
    return members


def raw_elements(data: bytes) -> list[bytes]:
    """Split a JSON array (or ``null``) into the raw bytes of its elements."""
    text = _decode_text(data)
    pos = _skip_whitespace(text, 0)
    if text[pos:].rstrip(" \t\n\r") == "null":
        return []
    if text[pos : pos + 1] != "[":
        raise RecordDecodeError("expected a JSON array")
    elements: list[bytes] = []
    pos = _skip_whitespace(text, pos + 1)
    if text[pos : pos + 1] == "]":
        pos += 1
    else:
        while True:
            end = _raw_value(text, pos)
            elements.append(text[pos:end].encode("utf-8"))
            pos = _skip_whitespace(text, end)
            delimiter = text[pos : pos + 1]
            pos = _skip_whitespace(text, pos + 1)
            if delimiter == "]":
                break
            if delimiter != ",":
                raise RecordDecodeError(f"expected ',' or ']' at offset {pos}")
    if _skip_whitespace(text, pos) != len(text):
        raise RecordDecodeError("unexpected data after JSON array")
    return elements
