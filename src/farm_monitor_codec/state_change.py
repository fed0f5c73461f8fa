"""
Fixed-width state-change records (fPort 3), single or batched.

Record layout, 11 bytes, little-endian:

    [0]     control_idx   uint8
    [1]     new_state     uint8
    [2]     old_state     uint8
    [3]     source        uint8  (TriggerSource)
    [4]     rule_id       uint8  (0 unless source is RULE)
    [5-8]   device_ms     uint32
    [9-10]  seq           uint16
"""

import logging
import struct
from typing import Any, Iterable

from .errors import EncodeError, InvalidLengthError
from .tokens import Payload, to_bytes
from .types import ErrorKind, StateChangeRecord, TriggerSource

logger = logging.getLogger(__name__)

_RECORD = struct.Struct("<BBBBBIH")

RECORD_SIZE = _RECORD.size  # 11


def parse_state_changes(payload: Payload) -> list[StateChangeRecord]:
    """
    Decode a batch of records in input order.

    Raises InvalidLengthError when the payload is empty or not a multiple of
    RECORD_SIZE; no partial list is ever returned.
    """
    data = to_bytes(payload)
    if not data or len(data) % RECORD_SIZE != 0:
        raise InvalidLengthError(len(data), RECORD_SIZE)

    records: list[StateChangeRecord] = []
    for fields in _RECORD.iter_unpack(data):
        record = StateChangeRecord(*fields)
        if record.source is TriggerSource.UNKNOWN:
            logger.debug("Unknown trigger source %d at seq %d", record.source_id, record.seq)
        records.append(record)
    return records


def decode_state_change(payload: Payload) -> dict[str, Any]:
    """
    Decode state-change records to ``{"stateChanges": [...]}``.

    The result is always a list, even for a single 11-byte record. A bad total
    length yields ``{"error": "InvalidLength", "detail": ...}`` instead.
    """
    try:
        records = parse_state_changes(payload)
    except InvalidLengthError as e:
        logger.debug("Rejecting state change payload: %s", e)
        return {"error": ErrorKind.INVALID_LENGTH.value, "detail": str(e)}
    return {"stateChanges": [r.to_dict() for r in records]}


def _check_range(name: str, value: int, bits: int) -> int:
    if not isinstance(value, int) or not (0 <= value < (1 << bits)):
        raise EncodeError(f"{name} out of range for uint{bits}: {value!r}", field=name, value=value)
    return value


def encode_state_change(records: Iterable[StateChangeRecord]) -> bytes:
    """Pack records back into the wire format, concatenated in order."""
    out = bytearray()
    for r in records:
        out += _RECORD.pack(
            _check_range("control_idx", r.control_idx, 8),
            _check_range("new_state", r.new_state, 8),
            _check_range("old_state", r.old_state, 8),
            _check_range("source_id", r.source_id, 8),
            _check_range("rule_id", r.rule_id, 8),
            _check_range("device_ms", r.device_ms, 32),
            _check_range("seq", r.seq, 16),
        )
    return bytes(out)
