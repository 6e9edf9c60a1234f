"""
Command-line interface for netshape.

Usage:
    netshape [apply] [PRESET] -i eth0 [-r KBIT] [-d MS] [-j MS] [-l PCT]
    netshape reset -i eth0
    netshape status
"""

import argparse
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

from .backend import TcBackend, format_number
from .config import resolve_config
from .exceptions import (
    BackendError,
    ConfigLoadError,
    InvalidSelectionError,
    InvalidValueError,
)
from .shaper import Shaper

logger = logging.getLogger("netshape")

COMMANDS = ("apply", "reset", "status")

EXIT_OK = 0
EXIT_BACKEND_ERROR = 1
EXIT_USAGE_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="netshape",
        description=(
            "Shape egress traffic on a network interface: limit bandwidth "
            "and inject delay, jitter and packet loss."
        ),
        epilog="Commands: apply (default), reset, status. "
        "Any other positional token is a preset name.",
    )
    parser.add_argument(
        "tokens",
        nargs="*",
        metavar="COMMAND|PRESET",
        help="Optional command followed by a preset name (last preset wins)",
    )
    parser.add_argument(
        "--interface", "-i",
        default=None,
        help="Network interface to shape (default: $NETSHAPE_INTERFACE or config)"
    )
    parser.add_argument(
        "--rate", "-r",
        default=None,
        help="Rate limit in kbit/s, fractions allowed (default: 5000)"
    )
    parser.add_argument(
        "--delay", "-d",
        default=None,
        help="One-way delay in milliseconds (default: 0)"
    )
    parser.add_argument(
        "--jitter", "-j",
        default=None,
        help="Delay variation in milliseconds (default: 0)"
    )
    parser.add_argument(
        "--loss", "-l",
        default=None,
        help="Packet loss percentage, 0-100 (default: 0)"
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML config file (default: $NETSHAPE_CONFIG)"
    )
    parser.add_argument(
        "--sudo",
        action="store_true",
        default=None,
        help="Run tc through passwordless sudo"
    )
    parser.add_argument(
        "--dry-run", "-n",
        action="store_true",
        help="Print the tc commands instead of running them"
    )
    parser.add_argument(
        "--list-presets",
        action="store_true",
        help="List available presets and exit"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log every tc command"
    )
    return parser


def split_tokens(tokens: list[str]) -> tuple[str, Optional[str]]:
    """
    Split positional tokens into (command, preset).

    The first token is the command if it names one. Every remaining token is
    a preset name and the last one wins.
    """
    command = "apply"
    rest = list(tokens)
    if rest and rest[0] in COMMANDS:
        command = rest.pop(0)
    preset = rest[-1] if rest else None
    return command, preset


def format_presets(shaper: Shaper) -> str:
    lines = []
    for preset in shaper.list_presets():
        names = ", ".join(preset.names)
        lines.append(
            f"{names:<24} {format_number(preset.rate_kbps):>7} kbit/s "
            f"{preset.delay_ms:>5} ms {format_number(preset.loss_pct):>5} %  "
            f"{preset.description}"
        )
    return "\n".join(lines)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    command, preset = split_tokens(args.tokens)
    has_values = any(
        v is not None for v in (args.rate, args.delay, args.jitter, args.loss)
    )
    if command != "apply" and (preset is not None or has_values):
        parser.error(f"{command} does not take presets or shaping values")

    try:
        config = resolve_config(args.config)
        use_sudo = config.use_sudo if args.sudo is None else args.sudo
        backend = TcBackend(use_sudo=use_sudo, dry_run=args.dry_run)
        shaper = Shaper(
            backend=backend,
            presets=config.preset_index(),
            default_interface=config.default_interface,
        )

        if args.list_presets:
            print(format_presets(shaper))
            return EXIT_OK

        if command in ("apply", "reset") and not args.dry_run:
            if not backend.check_privileges():
                logger.warning("Not running as root; tc may refuse changes (try --sudo)")

        if command == "apply":
            shaper.apply(
                args.interface,
                preset,
                rate_kbps=args.rate,
                delay_ms=args.delay,
                jitter_ms=args.jitter,
                loss_pct=args.loss,
            )
        elif command == "reset":
            shaper.reset(args.interface)
        else:
            output = shaper.status()
            if output:
                print(output)

        if args.dry_run:
            print("\n".join(backend.history))

    except (InvalidSelectionError, InvalidValueError, ConfigLoadError) as e:
        print(f"netshape: error: {e}", file=sys.stderr)
        return EXIT_USAGE_ERROR
    except BackendError as e:
        print(f"netshape: error: {e}", file=sys.stderr)
        return EXIT_BACKEND_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
