"""
Property-based tests with Hypothesis for the uplink and state change decoders.

Covers:
- uplink decoding never raises and is deterministic
- registration field count and class follow the declared groups
- telemetry keeps exactly the tokens with a single separator
- state change length policy and record count
- state change encode/decode consistency
"""

import string

from hypothesis import given, settings
from hypothesis import strategies as st

from farm_monitor_codec import (
    StateChangeRecord,
    decode_state_change,
    decode_uplink,
    encode_state_change,
    parse_state_changes,
)

# =============================================================================
# Strategies
# =============================================================================

bytes_strategy = st.binary(min_size=0, max_size=256)
ports = st.integers(min_value=1, max_value=223)

ident = st.text(alphabet=string.ascii_letters + string.digits + "_", min_size=1, max_size=8)
label = st.text(alphabet=string.ascii_letters + string.digits + " ", max_size=12)
bound = st.one_of(st.just(""), st.integers(min_value=-1000, max_value=1000).map(str))

# Telemetry tokens never contain the pair separator ","
token = st.text(alphabet=string.ascii_letters + string.digits + ":.-", max_size=12)

u8 = st.integers(min_value=0, max_value=255)
records = st.builds(
    StateChangeRecord,
    control_idx=u8,
    new_state=u8,
    old_state=u8,
    source_id=u8,
    rule_id=u8,
    device_ms=st.integers(min_value=0, max_value=2**32 - 1),
    seq=st.integers(min_value=0, max_value=2**16 - 1),
)


@st.composite
def registrations(draw):
    """A registration string plus the (key, class) pairs it declares, in order."""
    keys = draw(st.lists(ident, min_size=1, max_size=12, unique=True))
    groups: list[tuple[str, list[str]]] = []
    expected: list[tuple[str, str]] = []
    i = 0
    while i < len(keys):
        size = draw(st.integers(min_value=1, max_value=len(keys) - i))
        kind = draw(st.sampled_from(["fields", "states"]))
        entries = []
        for key in keys[i : i + size]:
            if kind == "fields":
                entries.append(":".join([key, draw(label), draw(ident), draw(bound), draw(bound)]))
                expected.append((key, "cont"))
            else:
                values = draw(st.lists(ident, min_size=1, max_size=4))
                entries.append(":".join([key, draw(label), ";".join(values)]))
                expected.append((key, "state"))
        groups.append((kind, entries))
        i += size
    text = "|".join(f"{kind}={','.join(entries)}" for kind, entries in groups)
    return text, expected


# =============================================================================
# Uplink
# =============================================================================


@given(payload=bytes_strategy, port=ports)
@settings(max_examples=300)
def test_uplink_never_raises_and_is_deterministic(payload: bytes, port: int) -> None:
    first = decode_uplink(payload, port)
    assert "data" in first
    assert first == decode_uplink(payload, port)


@given(reg=registrations())
def test_registration_field_count_and_class(reg) -> None:
    text, expected = reg
    fields = decode_uplink(text.encode("latin-1"), 1)["data"]["fields"]
    assert [(f["k"], f["c"]) for f in fields] == expected
    for f in fields:
        assert f["t"] == ("num" if f["c"] == "cont" else "enum")
        assert ("v" in f) == (f["c"] == "state")


@given(tokens=st.lists(token, max_size=10))
def test_telemetry_keeps_single_separator_tokens(tokens: list[str]) -> None:
    data = decode_uplink(",".join(tokens).encode(), 2)["data"]
    expected_keys = {t.split(":")[0] for t in tokens if t.count(":") == 1}
    assert set(data) == expected_keys


# =============================================================================
# State change
# =============================================================================


@given(payload=bytes_strategy)
@settings(max_examples=300)
def test_state_change_length_policy(payload: bytes) -> None:
    result = decode_state_change(payload)
    if payload and len(payload) % 11 == 0:
        assert "error" not in result
        assert len(result["stateChanges"]) == len(payload) // 11
    else:
        assert "error" in result
        assert "stateChanges" not in result


@given(batch=st.lists(records, min_size=1, max_size=8))
def test_state_change_encode_decode_consistency(batch: list[StateChangeRecord]) -> None:
    payload = encode_state_change(batch)
    assert len(payload) == 11 * len(batch)
    assert parse_state_changes(payload) == batch
