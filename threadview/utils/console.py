"""Centralised console management module"""

from typing import Optional

from rich.console import Console

_console: Optional[Console] = None


def get_console() -> Console:
    """Get the shared Console instance (writes to stderr; stdout belongs to the UI)"""
    global _console

    if _console is None:
        _console = Console(stderr=True)

    return _console


def reset_console() -> None:
    """Reset the shared Console instance (for testing purposes)"""
    global _console
    _console = None
