"""Downlink encoders: server-to-device commands for the registration ACK, control and rule ports."""

import logging
import struct
from typing import Any

from .errors import EncodeError

logger = logging.getLogger(__name__)

PORT_REG_ACK = 5
PORT_SET_INTERVAL = 11
PORT_DISPLAY_TIMEOUT = 16
PORT_DIRECT_CONTROL = 20
PORT_RULE_UPDATE = 30

RULE_OPERATORS: dict[str, int] = {"<": 0, ">": 1, "<=": 2, ">=": 3, "==": 4, "!=": 5}

RULE_CLEAR_ALL = 0xFF
RULE_DELETE_FLAG = 0x80
DEFAULT_COOLDOWN_SEC = 300
DEFAULT_PRIORITY = 128


def _uint(data: dict[str, Any], name: str, bits: int, default: int = 0) -> int:
    raw = data.get(name)
    value = default if raw is None else raw
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodeError(f"{name} must be an integer, got {value!r}", field=name, value=value)
    if not (0 <= value < (1 << bits)):
        raise EncodeError(f"{name} out of range for uint{bits}: {value}", field=name, value=value)
    return value


def encode_set_interval(data: dict[str, Any]) -> list[int]:
    """Reporting interval in seconds, uint32 big-endian. Empty when no interval is given."""
    if not data.get("interval"):
        return []
    return list(struct.pack(">I", _uint(data, "interval", 32)))


def encode_display_timeout(data: dict[str, Any]) -> list[int]:
    """Display auto-off timeout in seconds, uint16 big-endian."""
    return list(struct.pack(">H", _uint(data, "timeout_sec", 16)))


def encode_direct_control(data: dict[str, Any]) -> list[int]:
    """
    Direct control, 7 bytes:

        [0]    control_idx
        [1]    state_idx
        [2]    flags, bit 0 = is_manual
        [3-6]  manual_timeout_sec uint32 LE
    """
    return list(
        struct.pack(
            "<BBBI",
            _uint(data, "control_idx", 8),
            _uint(data, "state_idx", 8),
            1 if data.get("is_manual") else 0,
            _uint(data, "timeout_sec", 32),
        )
    )


def encode_rule_update(data: dict[str, Any]) -> list[int]:
    """
    Rule management. Special commands:

        [0xFF, 0x00]          clear all rules
        [rule_id, 0x80]       delete one rule

    Otherwise a 12-byte add/update:

        [0]     rule_id
        [1]     flags [enabled:1][operator:3][delete:1][reserved:3]
        [2]     field_idx
        [3-6]   threshold float32 LE
        [7]     control_idx
        [8]     action_state
        [9-10]  cooldown_sec uint16 LE
        [11]    priority
    """
    if data.get("clear_all"):
        return [RULE_CLEAR_ALL, 0x00]
    if data.get("delete_rule") is not None:
        return [_uint(data, "delete_rule", 8), RULE_DELETE_FLAG]

    operator = data.get("operator") or "<"
    if not isinstance(operator, str):
        raise EncodeError(f"operator must be a string, got {operator!r}", field="operator", value=operator)
    op = RULE_OPERATORS.get(operator, 0)
    enabled = 0 if data.get("enabled") is False else 1
    threshold = data.get("threshold") or 0
    try:
        threshold_bytes = struct.pack("<f", float(threshold))
    except (TypeError, ValueError, OverflowError) as e:
        raise EncodeError(f"threshold is not a float32: {threshold!r}", field="threshold", value=threshold) from e

    return [
        _uint(data, "rule_id", 8),
        (enabled << 7) | ((op & 0x07) << 4),
        _uint(data, "field_idx", 8),
        *threshold_bytes,
        _uint(data, "control_idx", 8),
        _uint(data, "action_state", 8),
        *struct.pack("<H", _uint(data, "cooldown_sec", 16, DEFAULT_COOLDOWN_SEC) or DEFAULT_COOLDOWN_SEC),
        _uint(data, "priority", 8, DEFAULT_PRIORITY) or DEFAULT_PRIORITY,
    ]


_ENCODERS = {
    PORT_SET_INTERVAL: encode_set_interval,
    PORT_DISPLAY_TIMEOUT: encode_display_timeout,
    PORT_DIRECT_CONTROL: encode_direct_control,
    PORT_RULE_UPDATE: encode_rule_update,
}


def encode_downlink(data: dict[str, Any], fport: int | None = None) -> dict[str, Any]:
    """
    Encode a downlink command to ``{"bytes": [...], "fPort": n}``.

    The port comes from the argument or ``data["fPort"]``. Ports without a
    dedicated encoder pass ``data["bytes"]`` through. Raises EncodeError for
    values that do not fit their field.
    """
    port = fport or data.get("fPort")
    if port is None:
        raise EncodeError("No fPort given for downlink", field="fPort")

    if port == PORT_REG_ACK:
        payload = [0x01]
    elif port in _ENCODERS:
        payload = _ENCODERS[port](data)
    else:
        raw = data.get("bytes") or []
        try:
            payload = [int(b) for b in raw]
        except (TypeError, ValueError) as e:
            raise EncodeError(f"Pass-through bytes are not integers: {raw!r}", field="bytes", value=raw) from e
        if any(not 0 <= b <= 0xFF for b in payload):
            raise EncodeError(f"Pass-through bytes out of range: {raw!r}", field="bytes", value=raw)

    logger.debug("Encoded downlink fPort %s: %d bytes", port, len(payload))
    return {"bytes": payload, "fPort": port}
