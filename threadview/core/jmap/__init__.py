"""JMAP transport."""

from .client import JmapClient, well_known_url

__all__ = ["JmapClient", "well_known_url"]
