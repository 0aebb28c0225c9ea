"""External instance lookup strategy (priority 40).

Asks an InstanceTypeLookup collaborator (typically the host's own record
of created instances) which approval type an instance belongs to. Lookup
errors are logged and treated as "no result".
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING

from ...logging import log_warn
from ..base_strategy import ResolutionStrategy

if TYPE_CHECKING:
    from ...collaborators import InstanceTypeLookup
    from ...registry import TypeRegistry
    from ...types import CallbackEvent


class InstanceLookupStrategy(ResolutionStrategy):
    """Resolve by asking an external store for the instance's type."""

    def __init__(self, lookup: InstanceTypeLookup) -> None:
        self.lookup = lookup

    @property
    def name(self) -> str:
        return "instance_lookup"

    @property
    def priority(self) -> int:
        return 40

    def can_resolve(self, event: CallbackEvent) -> bool:
        return bool(event.instance_id)

    async def resolve(self, event: CallbackEvent, registry: TypeRegistry) -> str | None:
        try:
            result = self.lookup.find_type_id(event.instance_id)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            log_warn(
                f"Instance type lookup failed: {e}",
                {
                    "instance_id": event.instance_id,
                    "error_type": type(e).__name__,
                },
            )
            return None

        return result or None


__all__ = ["InstanceLookupStrategy"]
