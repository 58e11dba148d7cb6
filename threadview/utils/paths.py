"""Centralized path definitions for the threadview application.

Single source of truth for where configuration and logs live.
"""

from pathlib import Path

# Base application directory
THREADVIEW_DIR = Path.home() / ".threadview"

# Subdirectories
LOGS_DIR = THREADVIEW_DIR / "logs"

# Specific files
CONFIG_PATH = THREADVIEW_DIR / "config.json"
