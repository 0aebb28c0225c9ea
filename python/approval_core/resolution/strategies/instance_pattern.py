"""Instance id pattern strategy (priority 20).

Hosts that prefix instance ids with their approval type produce ids
shaped ``SEGMENT_SEGMENT_...``. The first two segments, joined again by
the separator, form the candidate type id.

Example:
    >>> strategy = InstancePatternStrategy()
    >>> # "leave_approval_20240101_0007" -> "leave_approval" (if registered)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..base_strategy import ResolutionStrategy

if TYPE_CHECKING:
    from ...registry import TypeRegistry
    from ...types import CallbackEvent


class InstancePatternStrategy(ResolutionStrategy):
    """Resolve from the leading segments of the instance id.

    The candidate is accepted only if it is registered.
    """

    def __init__(self, separator: str = "_", segments: int = 2) -> None:
        """Initialize the strategy.

        Args:
            separator: Segment separator within instance ids.
            segments: Number of leading segments forming the type id.
        """
        if not separator:
            raise ValueError("separator must be a non-empty string")
        if segments < 1:
            raise ValueError("segments must be at least 1")
        self.separator = separator
        self.segments = segments

    @property
    def name(self) -> str:
        return "instance_pattern"

    @property
    def priority(self) -> int:
        return 20

    def can_resolve(self, event: CallbackEvent) -> bool:
        return self.separator in (event.instance_id or "")

    def candidate(self, instance_id: str) -> str | None:
        """Derive the candidate type id from an instance id."""
        parts = instance_id.split(self.separator)
        if len(parts) < self.segments:
            return None
        leading = parts[: self.segments]
        if not all(leading):
            return None
        return self.separator.join(leading)

    def resolve(self, event: CallbackEvent, registry: TypeRegistry) -> str | None:
        candidate = self.candidate(event.instance_id or "")
        if candidate and registry.is_registered(candidate):
            return candidate
        return None


__all__ = ["InstancePatternStrategy"]
