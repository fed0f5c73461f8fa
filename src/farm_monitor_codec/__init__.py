"""farm-monitor-codec: LoRaWAN uplink/downlink codec for farm monitor devices."""

__version__ = "0.1.0"

from .downlink import encode_downlink
from .errors import CodecError, EncodeError, InvalidFrameError, InvalidLengthError, UnknownPortError
from .portmap import PortMap, get_default_portmap, route_uplink
from .state_change import decode_state_change, encode_state_change, parse_state_changes
from .types import (
    CommandSpec,
    ContinuousField,
    EnumeratedField,
    ErrorKind,
    FieldSpec,
    PortDef,
    Registration,
    StateChangeRecord,
    SystemField,
    TriggerSource,
)
from .uplink import (
    assemble_registration,
    decode_command_ack,
    decode_diagnostics,
    decode_ota_progress,
    decode_registration,
    decode_telemetry,
    decode_uplink,
    parse_registration,
    parse_registration_frame,
    parse_system_fields,
    parse_telemetry,
)

__all__ = [
    "__version__",
    "decode_uplink",
    "decode_state_change",
    "parse_state_changes",
    "encode_state_change",
    "encode_downlink",
    "route_uplink",
    "PortMap",
    "get_default_portmap",
    "decode_command_ack",
    "decode_diagnostics",
    "decode_ota_progress",
    "decode_registration",
    "decode_telemetry",
    "parse_system_fields",
    "parse_registration",
    "parse_registration_frame",
    "assemble_registration",
    "parse_telemetry",
    "CodecError",
    "EncodeError",
    "InvalidFrameError",
    "InvalidLengthError",
    "UnknownPortError",
    "CommandSpec",
    "ContinuousField",
    "EnumeratedField",
    "ErrorKind",
    "FieldSpec",
    "PortDef",
    "Registration",
    "StateChangeRecord",
    "SystemField",
    "TriggerSource",
]
