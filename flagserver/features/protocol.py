"""
Protocol definition for flag providers.

Defines the interface the snapshot builder and the HTTP handler depend on.
"""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class InitializationResult:
    """Outcome of initializing a flag provider."""

    ok: bool
    error: Optional[Exception] = None

    @classmethod
    def success(cls) -> "InitializationResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: Exception) -> "InitializationResult":
        return cls(ok=False, error=error)


class FlagProvider(Protocol):
    """
    Protocol for flag provider implementations.

    UnleashFlagProvider implements this protocol for production; tests
    substitute an in-memory fake.
    """

    def initialize(self) -> InitializationResult:
        """
        Connect to the provider and block until flags are available.

        Returns:
            InitializationResult describing success or the failure cause.
        """
        ...

    def is_enabled(self, name: str) -> bool:
        """
        Evaluate a single flag.

        Evaluation never fails: providers return False when they cannot decide.
        """
        ...

    def destroy(self) -> None:
        """Stop background refreshing and release provider resources."""
        ...
