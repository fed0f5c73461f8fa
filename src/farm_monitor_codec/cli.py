#!/usr/bin/env python3
"""Command-line interface for farm-monitor-codec using Typer."""

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .downlink import encode_downlink
from .errors import EncodeError
from .portmap import PortMap, get_default_portmap, route_uplink
from .state_change import decode_state_change
from .uplink import decode_uplink

app = typer.Typer(
    name="farmcodec",
    help="Decode farm monitor LoRaWAN uplinks and encode downlinks.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

ENCODINGS = ("hex", "base64", "text")

# ============================================================================
# Shared options and helpers
# ============================================================================

EncodingOption = Annotated[
    str,
    typer.Option("--encoding", "-e", help="Payload encoding: hex, base64, text", envvar="FARMCODEC_ENCODING"),
]
PortMapOption = Annotated[
    Optional[str],
    typer.Option("--port-map", help="JSON port map overriding the packaged fPort table", envvar="FARMCODEC_PORT_MAP"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_payload(value: str, encoding: str) -> bytes:
    """Turn a command-line payload into bytes. Hex may contain spaces or a 0x prefix."""
    if encoding == "hex":
        v = value.strip().replace(" ", "")
        if v.lower().startswith("0x"):
            v = v[2:]
        return bytes.fromhex(v)
    if encoding == "base64":
        try:
            return base64.b64decode(value.strip(), validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
    if encoding == "text":
        return value.encode("latin-1")
    raise ValueError(f"Invalid encoding {encoding!r}. Must be one of: {', '.join(ENCODINGS)}")


def load_port_map(port_map: Optional[str]) -> PortMap:
    if not port_map:
        return get_default_portmap()
    path = Path(port_map)
    if not path.is_file():
        typer.echo(f"Error: Port map file not found: {path}", err=True)
        raise typer.Exit(2)
    return PortMap(path=path)


def echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


# ============================================================================
# Commands
# ============================================================================

@app.command()
def decode(
    payload: Annotated[str, typer.Argument(help="Uplink payload (hex by default)")],
    port: Annotated[int, typer.Option("--port", "-p", help="Uplink fPort")],
    encoding: EncodingOption = "hex",
    port_map: PortMapOption = None,
    raw_router: Annotated[
        bool,
        typer.Option("--raw-router", help="Use the two-way router: fPort 1 registration, anything else telemetry"),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Decode one uplink and print the result as JSON.

    By default the fPort is looked up in the port map (registration, telemetry,
    state change, command ACK, diagnostics, OTA progress).
    """
    setup_logging(verbose)

    try:
        data = parse_payload(payload, encoding)
    except ValueError as e:
        typer.echo(f"Error: Invalid payload: {e}", err=True)
        raise typer.Exit(2)

    try:
        if raw_router:
            result = decode_uplink(data, port)
        else:
            result = route_uplink(data, port, load_port_map(port_map))
    except typer.Exit:
        raise
    except ValueError as e:
        typer.echo(f"Error: Invalid port map: {e}", err=True)
        raise typer.Exit(2)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)

    echo_json(result)


@app.command(name="state-change")
def state_change(
    payload: Annotated[str, typer.Argument(help="One or more 11-byte state change records")],
    encoding: EncodingOption = "hex",
    verbose: VerboseOption = False,
) -> None:
    """
    Decode fixed-width state change records.

    Exits with status 2 when the length is not a positive multiple of 11.
    """
    setup_logging(verbose)

    try:
        data = parse_payload(payload, encoding)
    except ValueError as e:
        typer.echo(f"Error: Invalid payload: {e}", err=True)
        raise typer.Exit(2)

    result = decode_state_change(data)
    echo_json(result)
    if "error" in result:
        raise typer.Exit(2)


@app.command()
def encode(
    command: Annotated[str, typer.Argument(help='Downlink command as JSON, e.g. \'{"interval": 600}\'')],
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Downlink fPort (or fPort in the JSON)")] = None,
    as_hex: Annotated[bool, typer.Option("--hex", help="Print the payload as a hex string")] = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Encode a downlink command.

    Supports registration ACK (5), interval (11), display timeout (16),
    direct control (20) and rule update (30); other ports pass "bytes" through.
    """
    setup_logging(verbose)

    try:
        data = json.loads(command)
    except json.JSONDecodeError as e:
        typer.echo(f"Error: Invalid JSON: {e}", err=True)
        raise typer.Exit(2)
    if not isinstance(data, dict):
        typer.echo("Error: Downlink command must be a JSON object", err=True)
        raise typer.Exit(2)

    try:
        result = encode_downlink(data, port)
    except EncodeError as e:
        typer.echo(f"Error: Cannot encode: {e}", err=True)
        raise typer.Exit(2)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)

    if as_hex:
        typer.echo(bytes(result["bytes"]).hex())
    else:
        typer.echo(json.dumps(result))


@app.command()
def ports(
    port_map: PortMapOption = None,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """List the uplink fPort table."""
    setup_logging(verbose)

    try:
        pm = load_port_map(port_map)
    except typer.Exit:
        raise
    except ValueError as e:
        typer.echo(f"Error: Invalid port map: {e}", err=True)
        raise typer.Exit(2)
    except Exception as e:
        typer.echo(f"Error: Unexpected error: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        raise typer.Exit(4)

    if json_output:
        echo_json([{"port": d.port, "decoder": d.decoder, "description": d.description} for d in pm])
    else:
        for d in pm:
            typer.echo(f"{d.port:>4}  {d.decoder:<14} {d.description or ''}".rstrip())


@app.command()
def info(json_output: JsonOption = False) -> None:
    """Show package version and the default port table size."""
    info_data = {
        "version": __version__,
        "ports": len(get_default_portmap()),
    }
    if json_output:
        echo_json(info_data)
    else:
        typer.echo(f"farm-monitor-codec version: {info_data['version']}")
        typer.echo(f"Default fPorts: {info_data['ports']}")


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"farm-monitor-codec {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """farmcodec - farm monitor LoRaWAN payload codec."""
    pass


if __name__ == "__main__":
    app()
