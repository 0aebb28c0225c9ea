"""Abstract base class for approval type resolution strategies.

Strategies are tried in priority order by the TypeResolver until one
recovers a type id from a callback event.

Resolution Contract:
1. name - Human-readable identifier for logging/debugging
2. priority - Lower numbers = tried first
3. can_resolve() - Quick check if the event carries what this strategy reads
4. resolve() - Return a type id, or None to pass to the next strategy
   (sync or async)

Example Implementation:
    class HeaderStrategy(ResolutionStrategy):
        @property
        def name(self) -> str:
            return "header"

        @property
        def priority(self) -> int:
            return 25

        def can_resolve(self, event: CallbackEvent) -> bool:
            return "x-approval-type" in event.raw

        def resolve(self, event, registry) -> str | None:
            candidate = event.raw["x-approval-type"]
            return candidate if registry.is_registered(candidate) else None
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..registry import TypeRegistry
    from ..types import CallbackEvent


class ResolutionStrategy(ABC):
    """Abstract base class for type resolution strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this strategy (for logging/debugging)."""
        ...

    @property
    @abstractmethod
    def priority(self) -> int:
        """Resolution priority (lower = tried first).

        Standard priorities:
        - 10: Direct type field
        - 20: Instance id pattern
        - 30: Payload scan
        - 40: External instance lookup
        """
        ...

    @abstractmethod
    def can_resolve(self, event: CallbackEvent) -> bool:
        """Quick eligibility check (called before resolve)."""
        ...

    @abstractmethod
    def resolve(self, event: CallbackEvent, registry: TypeRegistry) -> Any:
        """Recover the approval type id from the event.

        May be a coroutine function for strategies that consult an
        external store.

        Args:
            event: The inbound callback event.
            registry: Registry used to check candidate ids.

        Returns:
            Type id (or an awaitable of one), or None if this strategy
            cannot tell.
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, priority={self.priority})"


__all__ = ["ResolutionStrategy"]
