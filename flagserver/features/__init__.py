"""
Feature flags module for the flag server.

This module defines the served flags, the provider protocol and the
snapshot builder used by the HTTP handler.
"""

from flagserver.features.flags import Feature
from flagserver.features.protocol import FlagProvider, InitializationResult
from flagserver.features.snapshot import FlagSnapshot, build_snapshot, serialize_snapshot

__all__ = [
    "Feature",
    "FlagProvider",
    "InitializationResult",
    "FlagSnapshot",
    "build_snapshot",
    "serialize_snapshot",
]
