"""Tests for 11-byte state change records, single and batched."""

import pytest

from farm_monitor_codec import (
    InvalidLengthError,
    StateChangeRecord,
    TriggerSource,
    decode_state_change,
    encode_state_change,
    parse_state_changes,
)
from farm_monitor_codec.errors import EncodeError


def build_record(
    control_idx: int,
    new_state: int,
    old_state: int,
    source_id: int,
    rule_id: int,
    device_ms: int,
    seq: int,
) -> list[int]:
    """Record bytes assembled by hand, little-endian multi-byte fields."""
    return [
        control_idx,
        new_state,
        old_state,
        source_id,
        rule_id,
        device_ms & 0xFF,
        (device_ms >> 8) & 0xFF,
        (device_ms >> 16) & 0xFF,
        (device_ms >> 24) & 0xFF,
        seq & 0xFF,
        (seq >> 8) & 0xFF,
    ]


def test_single_record() -> None:
    result = decode_state_change(build_record(1, 1, 0, 2, 5, 0x12345678, 100))
    assert "error" not in result
    assert result["stateChanges"] == [
        {
            "control_idx": 1,
            "new_state": 1,
            "old_state": 0,
            "source": "MANUAL",
            "source_id": 2,
            "rule_id": 5,
            "device_ms": 0x12345678,
            "seq": 100,
        }
    ]


def test_batch_of_two() -> None:
    payload = build_record(0, 1, 0, 1, 10, 1000, 1) + build_record(1, 0, 1, 0, 0, 2000, 2)
    changes = decode_state_change(payload)["stateChanges"]
    assert len(changes) == 2
    assert changes[0]["control_idx"] == 0 and changes[0]["seq"] == 1
    assert changes[0]["source"] == "RULE"
    assert changes[0]["rule_id"] == 10
    assert changes[1]["control_idx"] == 1 and changes[1]["source"] == "BOOT"


def test_batch_of_three_keeps_order() -> None:
    payload = bytes(
        build_record(0, 1, 0, 1, 0, 100, 1)
        + build_record(1, 0, 1, 2, 0, 200, 2)
        + build_record(0, 0, 1, 3, 0, 300, 3)
    )
    changes = decode_state_change(payload)["stateChanges"]
    assert [c["seq"] for c in changes] == [1, 2, 3]
    assert [c["device_ms"] for c in changes] == [100, 200, 300]
    assert changes[2]["source"] == "DOWNLINK"


def test_high_bit_values_are_unsigned() -> None:
    record = parse_state_changes(build_record(255, 255, 255, 0, 255, 0xFFFFFFFF, 0xFFFF))[0]
    assert record.device_ms == 0xFFFFFFFF
    assert record.seq == 0xFFFF
    assert record.control_idx == 255


def test_unknown_source_decodes_to_placeholder() -> None:
    record = parse_state_changes(build_record(0, 1, 0, 9, 0, 0, 7))[0]
    assert record.source is TriggerSource.UNKNOWN
    assert record.source_id == 9
    change = decode_state_change(build_record(0, 1, 0, 9, 0, 0, 7))["stateChanges"][0]
    assert change["source"] == "UNKNOWN"
    assert change["source_id"] == 9


@pytest.mark.parametrize("length", [0, 1, 3, 10, 12, 20, 21, 23, 34])
def test_invalid_length(length: int) -> None:
    result = decode_state_change(bytes(length))
    assert result["error"] == "InvalidLength"
    assert "stateChanges" not in result
    assert str(length) in result["detail"]


def test_parse_raises_invalid_length() -> None:
    with pytest.raises(InvalidLengthError) as exc_info:
        parse_state_changes(b"\x01\x02\x03")
    assert exc_info.value.length == 3
    assert exc_info.value.record_size == 11


def test_encode_round_trip() -> None:
    records = [
        StateChangeRecord(1, 1, 0, TriggerSource.MANUAL, 5, 0x12345678, 100),
        StateChangeRecord(2, 0, 1, TriggerSource.DOWNLINK, 0, 42, 101),
    ]
    payload = encode_state_change(records)
    assert len(payload) == 22
    assert payload[:11] == bytes(build_record(1, 1, 0, 2, 5, 0x12345678, 100))
    assert parse_state_changes(payload) == records


def test_encode_rejects_out_of_range() -> None:
    with pytest.raises(EncodeError) as exc_info:
        encode_state_change([StateChangeRecord(0, 0, 0, 0, 0, 0, 70000)])
    assert exc_info.value.field == "seq"
