"""Command line entry point for the node dashboard."""

from __future__ import annotations

import argparse
import curses
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from .address_book import CommandListError
from .config import BACKENDS, ConfigurationError, load_config

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "btc-dashboard.log"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Terminal dashboard for a Bitcoin Core node and its receive addresses"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file (default: ~/.btc-dashboard.yaml when present)",
    )
    parser.add_argument(
        "--commands",
        dest="commands_path",
        default=None,
        help="JSON list of commands shown in the menu (default: commands.json)",
    )
    parser.add_argument(
        "--address-book",
        dest="address_book_path",
        default=None,
        help="Saved address book file (default: addresses.json)",
    )
    parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=None,
        help="Run queries through bitcoin-cli or JSON-RPC over HTTP",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help=f"Where to write logs while the UI owns the terminal (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name in ("commands_path", "address_book_path", "backend", "log_file"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    return overrides


def configure_logging(log_file: Path | None, *, debug: bool = False) -> None:
    logging.basicConfig(
        filename=str(log_file or DEFAULT_LOG_FILE),
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(config_path=args.config, overrides=_overrides(args))
        configure_logging(config.log_file, debug=args.debug)

        from .session import run_session

        code = run_session(config)
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        logger.info("Interrupted by user")
        code = 0
    except (ConfigurationError, CommandListError, curses.error) as exc:
        logger.error("Startup failed: %s", exc)
        parser.exit(1, f"error: {exc}\n")
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main(sys.argv[1:])
