"""
Feature flag definitions.

This module defines the flags exposed by the service. Flag names follow the
provider's naming convention: <category>-<name>, and are grouped by category
in the snapshot returned to callers.
"""

from enum import Enum


class Feature(str, Enum):
    """
    Enumeration of all feature flags served by the application.

    The value is the flag name as configured in the provider.
    """

    USER_METADATA = "user-metadata"

    @property
    def category(self) -> str:
        """Snapshot category key, e.g. "user" for "user-metadata"."""
        return self.value.split("-", 1)[0]

    @property
    def key(self) -> str:
        """Key within the category, e.g. "metadata" for "user-metadata"."""
        return self.value.split("-", 1)[1]
