"""Shared token helpers: byte-to-text, lenient number parsing, pair splitting."""

import math
import re
from typing import Iterable, Union

# Leading numeric prefix ("12.5V" -> 12.5, "1e3x" -> 1000.0)
_FLOAT_PREFIX = re.compile(
    r"^[ \t\n\r\v\f\xa0]*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))"
)
# Leading integer prefix, decimal or 0x hex ("12abc" -> 12)
_INT_PREFIX = re.compile(r"^[ \t\n\r\v\f\xa0]*([+-]?)(?:0[xX]([0-9a-fA-F]+)|(\d+))")

Payload = Union[bytes, bytearray, memoryview, Iterable[int]]


def to_text(payload: Payload) -> str:
    """Interpret each byte as one character code (no multi-byte decoding)."""
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload).decode("latin-1")
    return "".join(chr(int(b) & 0xFF) for b in payload)


def to_bytes(payload: Payload) -> bytes:
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    return bytes(int(b) & 0xFF for b in payload)


def parse_number(token: str) -> float | None:
    """
    Parse the numeric prefix of a token leniently.

    Returns None when there is no numeric prefix or the result is not finite
    (``"abc"``, ``"NaN"``, ``"Infinity"``).
    """
    m = _FLOAT_PREFIX.match(token)
    if not m:
        return None
    value = float(m.group(1))
    if not math.isfinite(value):
        return None
    return value


def parse_int(token: str, default: int = 0) -> int:
    """Parse the integer prefix of a token leniently; default when absent."""
    m = _INT_PREFIX.match(token)
    if not m:
        return default
    sign, hex_digits, dec_digits = m.groups()
    try:
        num = int(hex_digits, 16) if hex_digits is not None else int(dec_digits)
    except ValueError:
        # digit run longer than the interpreter's int-from-str limit
        return default
    return -num if sign == "-" else num


def number_or_text(token: str) -> float | str:
    """Numeric value of a token, or the token itself when it does not parse."""
    value = parse_number(token)
    return token if value is None else value


def split_pair(token: str, sep: str = ":") -> tuple[str, str] | None:
    """Split ``key<sep>value``; any token that does not yield exactly two parts is rejected."""
    parts = token.split(sep)
    if len(parts) != 2:
        return None
    return parts[0], parts[1]


def split_assignment(segment: str) -> tuple[str, str] | None:
    """Split ``key=value`` once on the first ``=``; no ``=`` or an empty key is rejected."""
    idx = segment.find("=")
    if idx <= 0:
        return None
    return segment[:idx], segment[idx + 1 :]


def positional(parts: list[str], index: int) -> str:
    """Positional part or empty string when absent."""
    return parts[index] if index < len(parts) else ""
