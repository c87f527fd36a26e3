"""
Conversions from raw SNMP values to Python values.

Values may arrive as pysnmp/pyasn1 objects (Counter64, OctetString,
IpAddress...), or as plain bytes / int / str when produced by fakes.
"""
from __future__ import annotations

import math
from typing import Any


def _as_octets(value: Any) -> bytes | None:
    """Return the raw bytes of an octet-like value, or None."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    as_octets = getattr(value, "asOctets", None)
    if callable(as_octets):
        return as_octets()
    return None


def decode_counter(value: Any) -> int:
    """
    Decode a counter value to a non-negative int.

    Byte buffers of any length are read big-endian (value*256 + byte).
    Integers, floats and numeric strings are coerced; anything non-finite
    or unparseable decodes to 0.
    """
    if value is None:
        return 0

    octets = _as_octets(value)
    if octets is not None:
        result = 0
        for byte in octets:
            result = result * 256 + byte
        return result

    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        return _parse_numeric(value)

    # pyasn1 integer types (Counter32/64, Gauge32, Integer32...)
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return _parse_numeric(str(value))


def _parse_numeric(text: str) -> int:
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return 0
    return int(number) if math.isfinite(number) else 0


def to_float(value: Any) -> float:
    """
    Parse a gauge-style value; returns 0.0 when not a finite number.

    Octet strings holding numeric text ("37.5") are parsed as text, any
    other octet string is read big-endian like a counter.
    """
    if value is None:
        return 0.0

    octets = _as_octets(value)
    if octets is not None:
        try:
            number = float(octets.decode("ascii").replace("\x00", "").strip())
        except (UnicodeDecodeError, ValueError):
            number = float(decode_counter(octets))
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return 0.0
    return number if math.isfinite(number) else 0.0


def to_int(value: Any, default: int = 0) -> int:
    """Parse an integer value, returning default on failure."""
    try:
        return int(to_text(value))
    except (ValueError, TypeError):
        return default


def to_text(value: Any) -> str:
    """
    Render a value as text.

    IpAddress values render as dotted quads; other octet strings are decoded
    as UTF-8 with NUL bytes removed.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value.replace("\x00", "").strip()
    if value.__class__.__name__ == "IpAddress":
        return value.prettyPrint()
    octets = _as_octets(value)
    if octets is not None:
        return octets.decode("utf-8", errors="replace").replace("\x00", "").strip()
    if hasattr(value, "prettyPrint"):
        return value.prettyPrint()
    return str(value)


def to_ip(value: Any) -> str:
    """Render an address value; 4 raw bytes become a dotted quad."""
    octets = _as_octets(value)
    if octets is not None and len(octets) == 4:
        return ".".join(str(b) for b in octets)
    return to_text(value)


def format_mac(value: Any) -> str | None:
    """
    Format a PhysAddress as ``aa:bb:cc:dd:ee:ff``.

    Accepts 6 raw bytes, or text already in hex notation ("0x001122...",
    "00:11:22:..."). Returns None when no MAC can be read.
    """
    octets = _as_octets(value)
    if octets is not None and len(octets) == 6:
        return ":".join(f"{b:02x}" for b in octets)

    text = octets.decode("latin-1") if octets is not None else str(value or "")
    text = text.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    hex_digits = text.replace(":", "").replace("-", "").replace(" ", "")
    if len(hex_digits) != 12 or any(c not in "0123456789abcdef" for c in hex_digits):
        return None
    return ":".join(hex_digits[i:i + 2] for i in range(0, 12, 2))
