"""진입점: python -m dumptruck"""

from __future__ import annotations

import argparse
import asyncio
import sys


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dumptruck",
        description="dumptruck - minimal SMTP acceptor that dumps inbound mail to disk",
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to configuration YAML file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output directory for mail (overrides storage.output_directory)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Listening port (overrides smtp.port)",
    )
    parser.add_argument(
        "--spam",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Perform DNSBL spam detection (overrides reputation.enabled)",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """dumptruck CLI 진입점. 설정을 로드하고 애플리케이션을 실행한다."""
    args = build_parser().parse_args(argv)

    from dumptruck.app import DumpTruck
    from dumptruck.errors import ConfigurationError
    from dumptruck.utils.config import Config

    try:
        config = Config.load(args.config)
        if args.output is not None:
            config.override("storage.output_directory", args.output)
        if args.port is not None:
            config.override("smtp.port", args.port)
        if args.spam is not None:
            config.override("reputation.enabled", args.spam)

        app = DumpTruck(config)
        asyncio.run(app.run())
    except ConfigurationError as exc:
        sys.exit(f"dumptruck: {exc}")
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
