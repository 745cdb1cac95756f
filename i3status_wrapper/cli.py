#!/usr/bin/env python3
"""
i3status-wrapper command-line entry point.

Usage:
    i3status | i3status-wrapper [--timeout 5s] "COMMAND [ARGS]" ...

Every cycle each COMMAND is run and its output is added, in the order given,
in front of the blocks produced by i3status.
"""

import argparse
import asyncio
import io
import logging
import os
import sys
from typing import Optional, Sequence

from . import __version__
from .config import DEFAULT_TIMEOUT, WrapperConfig, parse_duration
from .errors import CommandError, ConfigError, WrapperError
from .protocol import ProtocolReader, ProtocolWriter
from .wrapper import StatusWrapper

logger = logging.getLogger(__name__)


def _duration(text: str) -> float:
    try:
        return parse_duration(text)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(e.message)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="i3status-wrapper",
        description="Add the output of custom commands to the i3status stream for i3bar/swaybar",
    )
    # Single-dash spelling kept for existing bar configurations
    parser.add_argument(
        "-timeout", "--timeout",
        dest="timeout",
        type=_duration,
        default=DEFAULT_TIMEOUT,
        metavar="DURATION",
        help="timeout for custom command execution, e.g. 5s or 500ms (default: 5s)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="log level (default: $LOG_LEVEL or WARNING)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="write logs to this file instead of stderr",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "commands",
        nargs="*",
        metavar="COMMAND",
        help="custom command, split on whitespace into program and arguments",
    )
    return parser


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Setup logging to a file or stderr.

    Standard output carries the bar protocol, so logs never go there.

    Args:
        level: Log level name; falls back to $LOG_LEVEL, then WARNING
        log_file: Optional log file path
    """
    log_level = (level or os.environ.get("LOG_LEVEL", "WARNING")).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if log_file:
        handler = logging.FileHandler(log_file)
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    else:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter("%(levelname)s [%(name)s] %(message)s")
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger.debug(f"Logging configured: level={log_level}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    # The i3bar protocol is UTF-8 regardless of locale; invalid input bytes
    # become U+FFFD instead of aborting the bar
    if isinstance(sys.stdin, io.TextIOWrapper):
        sys.stdin.reconfigure(encoding="utf-8", errors="replace")
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(encoding="utf-8", errors="backslashreplace")

    try:
        config = WrapperConfig.from_commands(args.commands, timeout=args.timeout)
        wrapper = StatusWrapper(config, ProtocolReader(sys.stdin), ProtocolWriter(sys.stdout))
        asyncio.run(wrapper.run())

    except WrapperError as e:
        logger.debug("Fatal error", exc_info=True)
        print(e.message, file=sys.stderr)
        if isinstance(e, CommandError) and e.stderr:
            print(e.stderr, file=sys.stderr)
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)

    sys.exit(0)


if __name__ == "__main__":
    main()
