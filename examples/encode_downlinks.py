#!/usr/bin/env python3
"""Example: build downlink payloads for interval, direct control and rule updates."""

import sys

from farm_monitor_codec import EncodeError, encode_downlink


def main() -> None:
    try:
        print(encode_downlink({"interval": 600}, 11))
        print(encode_downlink({"control_idx": 0, "state_idx": 1, "is_manual": True, "timeout_sec": 900}, 20))
        print(
            encode_downlink(
                {
                    "rule_id": 1,
                    "field_idx": 0,
                    "operator": "<",
                    "threshold": 20.0,
                    "control_idx": 0,
                    "action_state": 1,
                },
                30,
            )
        )
        print(encode_downlink({"clear_all": True}, 30))
    except EncodeError as e:
        print(f"Cannot encode {e.field}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
