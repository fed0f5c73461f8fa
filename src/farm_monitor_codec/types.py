"""Core data model: field variants, registration, trigger sources and state-change records."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, ClassVar, Union


class FieldClass(str, Enum):
    """Field class tag carried on the wire as ``c``."""

    CONT = "cont"
    STATE = "state"
    SYS = "sys"


class FieldType(str, Enum):
    """Field value type carried on the wire as ``t``."""

    NUM = "num"
    ENUM = "enum"


class ErrorKind(str, Enum):
    """Errors surfaced to callers as ``{"error": ...}``."""

    INVALID_LENGTH = "InvalidLength"


class TriggerSource(IntEnum):
    """Cause of a control state change, as numbered by the device firmware."""

    UNKNOWN = -1
    BOOT = 0
    RULE = 1
    MANUAL = 2
    DOWNLINK = 3

    @classmethod
    def _missing_(cls, value: object) -> "TriggerSource":
        return cls.UNKNOWN


def _optional(out: dict[str, Any], key: str, value: Any) -> None:
    if value is not None and value != "":
        out[key] = value


@dataclass(frozen=True)
class ContinuousField:
    """Numeric sensor channel declared in a ``fields=`` group."""

    key: str
    name: str
    unit: str | None = None
    min_value: float | None = None
    max_value: float | None = None
    state_class: str | None = None

    field_class: ClassVar[FieldClass] = FieldClass.CONT
    field_type: ClassVar[FieldType] = FieldType.NUM

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "k": self.key,
            "n": self.name,
            "c": self.field_class.value,
            "t": self.field_type.value,
        }
        _optional(out, "u", self.unit)
        _optional(out, "min", self.min_value)
        _optional(out, "max", self.max_value)
        _optional(out, "s", self.state_class)
        return out


@dataclass(frozen=True)
class EnumeratedField:
    """Enumerated state channel declared in a ``states=`` group."""

    key: str
    name: str
    values: tuple[str, ...] = ("off", "on")

    field_class: ClassVar[FieldClass] = FieldClass.STATE
    field_type: ClassVar[FieldType] = FieldType.ENUM

    def to_dict(self) -> dict[str, Any]:
        return {
            "k": self.key,
            "n": self.name,
            "c": self.field_class.value,
            "t": self.field_type.value,
            "v": list(self.values),
        }


@dataclass(frozen=True)
class SystemField:
    """Device system parameter declared in the ``sys=`` metadata value."""

    key: str
    name: str
    unit: str | None = None
    min_value: float | None = None
    max_value: float | None = None
    writable: bool = False
    state_class: str | None = None

    field_class: ClassVar[FieldClass] = FieldClass.SYS
    field_type: ClassVar[FieldType] = FieldType.NUM

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "k": self.key,
            "n": self.name,
            "c": self.field_class.value,
            "t": self.field_type.value,
        }
        _optional(out, "u", self.unit)
        _optional(out, "min", self.min_value)
        _optional(out, "max", self.max_value)
        out["rw"] = self.writable
        _optional(out, "s", self.state_class)
        return out


FieldSpec = Union[ContinuousField, EnumeratedField]


@dataclass(frozen=True)
class CommandSpec:
    """Remote command name and the downlink fPort that carries it."""

    key: str
    port: int

    def to_dict(self) -> dict[str, Any]:
        return {"k": self.key, "port": self.port}


@dataclass(frozen=True)
class Registration:
    """
    A device's self-description: fields (continuous and enumerated, in declaration
    order), remote commands, and free-form metadata kept verbatim as strings.
    """

    fields: tuple[FieldSpec, ...] = ()
    commands: tuple[CommandSpec, ...] = ()
    metadata: dict[str, str] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash((self.fields, self.commands, tuple(sorted(self.metadata.items()))))

    def field_keys(self) -> list[str]:
        return [f.key for f in self.fields]

    def system_fields(self) -> list[SystemField]:
        """Parse the verbatim ``sys`` metadata value, if any, into SystemField entries."""
        from .uplink import parse_system_fields

        return parse_system_fields(self.metadata.get("sys", ""))

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.metadata)
        out["fields"] = [f.to_dict() for f in self.fields]
        out["cmds"] = [c.to_dict() for c in self.commands]
        return out


@dataclass(frozen=True)
class StateChangeRecord:
    """One 11-byte state-change record. ``source_id`` keeps the raw trigger byte."""

    control_idx: int
    new_state: int
    old_state: int
    source_id: int
    rule_id: int
    device_ms: int
    seq: int

    @property
    def source(self) -> TriggerSource:
        return TriggerSource(self.source_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "control_idx": self.control_idx,
            "new_state": self.new_state,
            "old_state": self.old_state,
            "source": self.source.name,
            "source_id": self.source_id,
            "rule_id": self.rule_id,
            "device_ms": self.device_ms,
            "seq": self.seq,
        }


@dataclass(frozen=True)
class CommandAck:
    """Device acknowledgment of a downlink command (fPort 4)."""

    port: int
    status: str

    @property
    def success(self) -> bool:
        return self.status == "ok"

    def to_dict(self) -> dict[str, Any]:
        return {"port": self.port, "status": self.status, "success": self.success}


@dataclass(frozen=True)
class OtaProgress:
    """OTA transfer progress report (fPort 8)."""

    status: int
    chunk_index: int

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "chunkIndex": self.chunk_index}


@dataclass(frozen=True)
class PortDef:
    """Uplink fPort and the name of the decoder that handles it."""

    port: int
    decoder: str
    description: str | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.port <= 223:
            raise ValueError(f"port must be an application fPort 1-223, got {self.port}")
