"""Argument parser configuration for the threadview CLI"""

import argparse
from pathlib import Path
from typing import List, NamedTuple, Optional

from threadview import __version__
from threadview.utils.errors import UsageError

USAGE = "threadview [options] [url] username password"


class Credentials(NamedTuple):
    session_url: Optional[str]
    username: str
    password: str


def split_credentials(values: List[str]) -> Credentials:
    """Interpret the positional arguments: ``[url] username password``."""
    if len(values) == 2:
        return Credentials(None, values[0], values[1])
    if len(values) == 3:
        return Credentials(values[0], values[1], values[2])
    raise UsageError(
        f"expected [url] username password, got {len(values)} argument(s)",
        details={"count": len(values)},
    )


def setup_argument_parser() -> argparse.ArgumentParser:
    """Setup the main argument parser for the threadview CLI."""

    parser = argparse.ArgumentParser(
        prog="threadview",
        usage=USAGE,
        description="Live, threaded view of a JMAP inbox in the terminal",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"threadview {__version__}",
    )
    parser.add_argument(
        "credentials",
        nargs="*",
        metavar="ARG",
        help="optional JMAP session URL, then username and password",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the JSON configuration file (default: ~/.threadview/config.json)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Seconds between background refreshes",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Threads fetched per page",
    )

    return parser
