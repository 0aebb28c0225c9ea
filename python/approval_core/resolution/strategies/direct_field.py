"""Direct field strategy (priority 10).

Takes the type id carried explicitly on the callback event. The value is
accepted verbatim; whether a handler exists for it is decided afterwards
by the registry lookup, which reports UnregisteredHandlerError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..base_strategy import ResolutionStrategy

if TYPE_CHECKING:
    from ...registry import TypeRegistry
    from ...types import CallbackEvent


class DirectFieldStrategy(ResolutionStrategy):
    """Resolve from the event's explicit ``type_id`` field."""

    @property
    def name(self) -> str:
        return "direct_field"

    @property
    def priority(self) -> int:
        return 10

    def can_resolve(self, event: CallbackEvent) -> bool:
        return bool(event.type_id and event.type_id.strip())

    def resolve(self, event: CallbackEvent, registry: TypeRegistry) -> str | None:
        return event.type_id or None


__all__ = ["DirectFieldStrategy"]
