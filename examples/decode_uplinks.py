#!/usr/bin/env python3
"""Example: decode a registration, a telemetry frame and a batch of state changes."""

import sys

from farm_monitor_codec import (
    InvalidLengthError,
    decode_uplink,
    parse_state_changes,
    route_uplink,
)


def main() -> None:
    registration = (
        b"v=1|type=water_monitor|fw=2.0.0"
        b"|fields=bp:Battery:%:0:100,tv:TotalVolume:L"
        b"|states=pump:WaterPump:off;on"
        b"|cmds=reset:10,interval:11,reboot:12"
    )
    print(decode_uplink(registration, 1))

    # Telemetry: malformed tokens are dropped, not fatal
    print(decode_uplink(b"bp:85,tv:1234.56,garbled,ec:0", 2))

    # Two state change records as delivered on fPort 3
    batch = bytes.fromhex("0001000100e8030000010001000100000d0700000200")
    print(route_uplink(batch, 3))

    try:
        for change in parse_state_changes(batch[:-1]):
            print(change)
    except InvalidLengthError as e:
        print(f"Rejected: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
