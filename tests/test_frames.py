"""Tests for multi-frame registration: frame validation and assembly."""

import pytest

from farm_monitor_codec import assemble_registration, decode_uplink, parse_registration_frame
from farm_monitor_codec.errors import InvalidFrameError


def test_parse_frame() -> None:
    assert parse_registration_frame("reg:fields|fields=bp:Battery") == ("fields", "fields=bp:Battery")
    assert parse_registration_frame("reg: cmds |") == ("cmds", "")


@pytest.mark.parametrize(
    ("text", "match"),
    [
        ("fields=bp:Battery", "Multi-frame registration required"),
        ("reg:fields", "missing pipe"),
        ("reg:bogus|x=1", "Invalid frame key"),
        ("reg:|x=1", "Invalid frame key"),
    ],
)
def test_parse_frame_invalid(text: str, match: str) -> None:
    with pytest.raises(InvalidFrameError, match=match) as exc_info:
        parse_registration_frame(text)
    assert exc_info.value.frame == text


def test_assemble_registration() -> None:
    frames = [
        b"reg:header|v=1|type=water_monitor|fw=2.0.0",
        b"reg:fields|fields=bp:Battery:%:0:100",
        "reg:sys|sys=tx:TxInt:s:10:3600:w",
        b"reg:states|states=pump:Pump:off;on",
        b"reg:cmds|cmds=reboot:12",
    ]
    reg = assemble_registration(frames)
    assert reg.metadata == {"v": "1", "type": "water_monitor", "fw": "2.0.0", "sys": "tx:TxInt:s:10:3600:w"}
    assert reg.field_keys() == ["bp", "pump"]
    assert [c.key for c in reg.commands] == ["reboot"]
    assert reg.system_fields()[0].writable is True


def test_assemble_rejects_bad_frame() -> None:
    with pytest.raises(InvalidFrameError):
        assemble_registration([b"reg:fields|fields=a", b"not a frame"])


def test_single_frame_on_uplink_router() -> None:
    data = decode_uplink(b"reg:states|states=valve:Valve:closed;open", 1)["data"]
    assert data["fields"] == [{"k": "valve", "n": "Valve", "c": "state", "t": "enum", "v": ["closed", "open"]}]
