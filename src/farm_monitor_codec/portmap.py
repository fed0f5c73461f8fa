"""PortMap: load the fPort-to-decoder table via importlib.resources, O(1) lookup, uplink routing."""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Callable

from .errors import UnknownPortError
from .state_change import decode_state_change
from .tokens import Payload, to_text
from .types import PortDef
from .uplink import (
    decode_command_ack,
    decode_diagnostics,
    decode_ota_progress,
    decode_registration,
    decode_telemetry,
)

logger = logging.getLogger(__name__)

DECODERS: dict[str, Callable[[Payload], Any]] = {
    "registration": decode_registration,
    "telemetry": decode_telemetry,
    "state_change": decode_state_change,
    "command_ack": decode_command_ack,
    "diagnostics": decode_diagnostics,
    "ota_progress": decode_ota_progress,
}

_DEFAULT_RESOURCE = "farm_monitor_codec.data.fports"


def _parse_entry(raw: dict[str, Any]) -> PortDef:
    """Build PortDef from a JSON entry (port, decoder, description)."""
    try:
        port = int(raw["port"])
        decoder = raw["decoder"]
    except KeyError as e:
        raise ValueError(f"Port map entry missing {e.args[0]!r}: {raw!r}") from None
    except TypeError:
        raise ValueError(f"Port map entry has a non-numeric port: {raw!r}") from None
    if decoder not in DECODERS:
        raise ValueError(f"Unknown decoder {decoder!r} for fPort {port}")
    description = raw.get("description")
    if description is not None and not isinstance(description, str):
        description = None
    return PortDef(port=port, decoder=decoder, description=description)


def _entries_from(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and "entries" in data:
        return data["entries"]
    return []


class PortMap:
    """
    In-memory map of uplink fPorts to decoders. Loaded from the packaged JSON
    table unless an override list or file is given. Immutable after construction.
    """

    def __init__(
        self,
        map_override: list[dict[str, Any]] | None = None,
        path: str | Path | None = None,
    ) -> None:
        self._by_port: dict[int, PortDef] = {}

        if map_override is not None:
            entries = map_override
            source = "override"
        elif path is not None:
            with open(path, "r", encoding="utf-8") as f:
                entries = _entries_from(json.load(f))
            source = str(path)
        else:
            pkg, name = _DEFAULT_RESOURCE.rsplit(".", 1)
            with resources.files(pkg).joinpath(f"{name}.json").open("r", encoding="utf-8") as f:
                entries = _entries_from(json.load(f))
            source = "default"

        for entry in entries:
            if not isinstance(entry, dict):
                continue
            port_def = _parse_entry(entry)
            if port_def.port in self._by_port:
                raise ValueError(f"Duplicate fPort in map: {port_def.port}")
            self._by_port[port_def.port] = port_def

        logger.debug("PortMap loaded from %s: %d entries", source, len(self._by_port))

    def lookup(self, port: int) -> PortDef:
        """Return PortDef for the fPort; raise UnknownPortError if not in map."""
        if port not in self._by_port:
            raise UnknownPortError(port)
        return self._by_port[port]

    def decoder_for(self, port: int) -> Callable[[Payload], Any]:
        return DECODERS[self.lookup(port).decoder]

    def __contains__(self, port: object) -> bool:
        return port in self._by_port

    def __iter__(self):
        return iter(sorted(self._by_port.values(), key=lambda d: d.port))

    def __len__(self) -> int:
        return len(self._by_port)


_default_map: PortMap | None = None


def get_default_portmap() -> PortMap:
    """Load (once) and return the packaged default PortMap."""
    global _default_map
    if _default_map is None:
        _default_map = PortMap()
    return _default_map


def route_uplink(payload: Payload, fport: int, port_map: PortMap | None = None) -> dict[str, Any]:
    """
    Decode an uplink with the decoder the port map assigns to its fPort.

    Returns ``{"data": ...}``. Unknown ports yield the raw text with a warning.
    """
    pm = port_map if port_map is not None else get_default_portmap()
    try:
        decoder = pm.decoder_for(fport)
    except UnknownPortError as e:
        logger.debug("%s; returning raw text", e)
        return {"data": {"raw": to_text(payload)}, "warnings": [str(e)]}
    data = decoder(payload)
    result: dict[str, Any] = {"data": data}
    if isinstance(data, dict) and "error" in data:
        result["errors"] = [data.get("detail") or data["error"]]
    return result
