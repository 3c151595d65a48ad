"""
External API client modules.

This module contains clients for interacting with external services
such as the Unleash feature-flag control plane.
"""

from flagserver.clients.unleash_client import UnleashFlagProvider

__all__ = ["UnleashFlagProvider"]
