"""CLI wrapper for reading a device through a chain of device class files."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dynaconf import ValidationError

from devclass.app_config import AppConfig
from devclass.app_logger import AppLogger
from devclass.communicator import DeviceClassCommunicator
from devclass.context import RequestContext
from devclass.errors import DefinitionError
from devclass.loader import load_device_class_chain
from devclass.report import read_device_report
from devclass.snmp_session import session_from_config

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Resolve identity, UPS metrics and interfaces of a device "
        "using device class definitions, and print the result as JSON."
    )
    parser.add_argument("host", help="Device host name or address")
    parser.add_argument(
        "--device-class",
        action="append",
        required=True,
        dest="device_classes",
        help="Device class YAML file; repeat to build a hierarchy, root first",
    )
    parser.add_argument(
        "--config",
        default="devclass_config.yaml",
        help="Path to the config file (default: devclass_config.yaml)",
    )
    parser.add_argument("--community", help="SNMP community (overrides config)")
    parser.add_argument("--port", type=int, help="SNMP port (overrides config)")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Deadline in seconds for the whole read (overrides request.timeout)",
    )

    args = parser.parse_args(argv)

    try:
        config = AppConfig(args.config)
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Error: Invalid config: {e}", file=sys.stderr)
        return 1

    AppLogger.configure(config)

    try:
        device_class = load_device_class_chain(args.device_classes)
    except (DefinitionError, OSError) as e:
        print(f"Error: Failed to load device class: {e}", file=sys.stderr)
        return 1

    timeout = args.timeout if args.timeout is not None else config.get("request.timeout")
    session = session_from_config(
        config.get("snmp", {}), args.host, community=args.community, port=args.port
    )
    logger.info(f"Reading {args.host} as {device_class.name}")

    with session:
        ctx = RequestContext(
            session=session,
            timeout=float(timeout) if timeout else None,
            logger=AppLogger.adapter("devclass", host=args.host),
        )
        report = read_device_report(ctx, DeviceClassCommunicator(device_class))

    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
