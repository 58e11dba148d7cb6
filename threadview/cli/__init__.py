"""Command-line entry point."""

from .cli import main

__all__ = ["main"]
