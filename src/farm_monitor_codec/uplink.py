"""
Uplink decoders: fPort 1 registration documents, key:value telemetry, and the
small text/binary frames devices send on the remaining uplink ports.

None of the decoders here raise on payload content. Malformed tokens are dropped
and the frame degrades to a smaller structure.
"""

import logging
from typing import Any, Iterable

from .errors import InvalidFrameError
from .tokens import (
    Payload,
    number_or_text,
    parse_int,
    parse_number,
    positional,
    split_assignment,
    split_pair,
    to_bytes,
    to_text,
)
from .types import (
    CommandAck,
    CommandSpec,
    ContinuousField,
    EnumeratedField,
    FieldSpec,
    OtaProgress,
    Registration,
    SystemField,
)

logger = logging.getLogger(__name__)

REGISTRATION_PORT = 1

DEFAULT_STATE_VALUES = ("off", "on")

# Frame keys a device may send as reg:<frameKey>|<data>
FRAME_KEYS = ("header", "fields", "sys", "states", "cmds")
_FRAME_PREFIX = "reg:"


def _entries(value: str) -> list[list[str]]:
    return [entry.split(":") for entry in value.split(",")]


def _parse_continuous(value: str) -> list[ContinuousField]:
    out: list[ContinuousField] = []
    for parts in _entries(value):
        key = parts[0]
        if not key:
            continue
        out.append(
            ContinuousField(
                key=key,
                name=positional(parts, 1) or key,
                unit=positional(parts, 2) or None,
                min_value=parse_number(positional(parts, 3)),
                max_value=parse_number(positional(parts, 4)),
                state_class=positional(parts, 5) or None,
            )
        )
    return out


def _parse_enumerated(value: str) -> list[EnumeratedField]:
    out: list[EnumeratedField] = []
    for parts in _entries(value):
        key = parts[0]
        if not key:
            continue
        states = positional(parts, 2)
        out.append(
            EnumeratedField(
                key=key,
                name=positional(parts, 1) or key,
                values=tuple(states.split(";")) if states else DEFAULT_STATE_VALUES,
            )
        )
    return out


def _parse_commands(value: str) -> list[CommandSpec]:
    out: list[CommandSpec] = []
    for parts in _entries(value):
        key = parts[0]
        if not key:
            continue
        out.append(CommandSpec(key=key, port=parse_int(positional(parts, 1))))
    return out


def parse_system_fields(value: str) -> list[SystemField]:
    """
    Parse a ``sys`` value: ``key:name:unit:min:max:access[:state_class]`` entries.

    Access ``w`` marks a writable parameter. Entries need at least key and name.
    A leading ``sys=`` is tolerated.
    """
    text = value.strip()
    if text.startswith("sys="):
        text = text[4:]
    out: list[SystemField] = []
    if not text:
        return out
    for entry in text.split(","):
        parts = entry.strip().split(":")
        if len(parts) < 2 or not parts[0]:
            continue
        out.append(
            SystemField(
                key=parts[0],
                name=parts[1] or parts[0],
                unit=positional(parts, 2) or None,
                min_value=parse_number(positional(parts, 3)),
                max_value=parse_number(positional(parts, 4)),
                writable=positional(parts, 5) == "w",
                state_class=positional(parts, 6) or None,
            )
        )
    return out


def parse_registration(text: str) -> Registration:
    """
    Parse ``key=value|key=value|...`` into a Registration.

    ``fields`` and ``states`` groups are folded into one ordered field sequence in
    the order they were declared; ``cmds`` become CommandSpecs; every other key is
    kept verbatim as metadata.
    """
    fields: list[FieldSpec] = []
    commands: list[CommandSpec] = []
    metadata: dict[str, str] = {}
    seen: set[str] = set()

    def add_fields(group: Iterable[FieldSpec]) -> None:
        for f in group:
            if f.key in seen:
                logger.debug("Dropping duplicate field key %r", f.key)
                continue
            seen.add(f.key)
            fields.append(f)

    for segment in text.split("|"):
        pair = split_assignment(segment)
        if pair is None:
            continue
        key, value = pair
        if key == "fields":
            add_fields(_parse_continuous(value))
        elif key == "states":
            add_fields(_parse_enumerated(value))
        elif key == "cmds":
            commands.extend(_parse_commands(value))
        else:
            metadata[key] = value

    return Registration(fields=tuple(fields), commands=tuple(commands), metadata=metadata)


def parse_telemetry(text: str, keep_text: frozenset[str] = frozenset()) -> dict[str, float | str]:
    """
    Parse ``key:value,key:value`` into a flat map.

    A token must split into exactly two parts on ``:``; anything else is dropped.
    Values become floats when they parse, otherwise the raw token. Keys listed in
    ``keep_text`` always keep the raw token. Last duplicate key wins.
    """
    result: dict[str, float | str] = {}
    for token in text.split(","):
        pair = split_pair(token)
        if pair is None:
            if token:
                logger.debug("Dropping malformed telemetry token %r", token)
            continue
        key, value = pair
        result[key] = value if key in keep_text else number_or_text(value)
    return result


def decode_registration(payload: Payload) -> dict[str, Any]:
    return parse_registration(to_text(payload)).to_dict()


def decode_telemetry(payload: Payload) -> dict[str, float | str]:
    return parse_telemetry(to_text(payload))


def decode_uplink(payload: Payload, fport: int) -> dict[str, Any]:
    """
    Decode an uplink: fPort 1 is a registration document, any other port is telemetry.

    Returns ``{"data": ...}``. Never raises on payload content.
    """
    if fport == REGISTRATION_PORT:
        return {"data": decode_registration(payload)}
    return {"data": decode_telemetry(payload)}


def decode_command_ack(payload: Payload) -> dict[str, Any]:
    """``"10:ok"`` -> ``{"port": 10, "status": "ok", "success": True}``."""
    parts = to_text(payload).split(":")
    ack = CommandAck(port=parse_int(parts[0]), status=positional(parts, 1) or "unknown")
    return ack.to_dict()


def decode_diagnostics(payload: Payload) -> dict[str, float | str]:
    """Diagnostics frame: telemetry rules, firmware version kept as text."""
    return parse_telemetry(to_text(payload), keep_text=frozenset({"fw"}))


def decode_ota_progress(payload: Payload) -> dict[str, Any]:
    """Three bytes: status, then the chunk index as uint16 little-endian."""
    data = to_bytes(payload)
    if len(data) < 3:
        return {"raw": list(data), "error": "OTA progress payload too short"}
    return OtaProgress(status=data[0], chunk_index=data[1] | (data[2] << 8)).to_dict()


def parse_registration_frame(text: str) -> tuple[str, str]:
    """
    Split one multi-frame registration frame ``reg:<frameKey>|<data>``.

    Returns (frame_key, frame_data); frame data may be empty. Raises
    InvalidFrameError for a missing prefix, missing pipe or unknown frame key.
    """
    if not text.startswith(_FRAME_PREFIX):
        raise InvalidFrameError(text, "Multi-frame registration required")
    pipe = text.find("|")
    if pipe < 0:
        raise InvalidFrameError(text, "Invalid frame format: missing pipe separator")
    frame_key = text[len(_FRAME_PREFIX) : pipe].strip()
    if frame_key not in FRAME_KEYS:
        raise InvalidFrameError(text, f"Invalid frame key: {frame_key!r}")
    return frame_key, text[pipe + 1 :]


def assemble_registration(frames: Iterable[Payload | str]) -> Registration:
    """Join the data of a set of registration frames and parse them as one document."""
    parts: list[str] = []
    for frame in frames:
        text = frame if isinstance(frame, str) else to_text(frame)
        frame_key, frame_data = parse_registration_frame(text)
        logger.debug("Registration frame %s: %d chars", frame_key, len(frame_data))
        if frame_data:
            parts.append(frame_data)
    return parse_registration("|".join(parts))
