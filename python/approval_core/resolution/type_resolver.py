"""Type Resolver - Priority-Ordered Approval Type Recovery.

The TypeResolver recovers the approval type of a callback event by trying
strategies in priority order until one returns a type id.

Resolution Contract:
1. Strategies are tried in priority order (lower = first)
2. A strategy is skipped when can_resolve() is False
3. The first non-empty result wins
4. None means "unresolved"; callers raise AmbiguousTypeResolutionError

Default Chain (when using .default()):
- Priority 10: DirectFieldStrategy      - explicit type field, verbatim
- Priority 20: InstancePatternStrategy  - SEGMENT_SEGMENT instance id prefix
- Priority 30: PayloadScanStrategy      - type key inside the form payload
- Priority 40: InstanceLookupStrategy   - external store (only with a lookup)

Usage:
    resolver = TypeResolver.default(registry, lookup=my_lookup)
    resolution = await resolver.resolve(event)
    if resolution is None:
        raise AmbiguousTypeResolutionError(instance_id=event.instance_id)

Adding Custom Strategies:
    resolver.add_strategy(HeaderStrategy())
"""

from __future__ import annotations

import inspect
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..event_bridge import EventNames
from ..logging import log_debug, log_info, log_trace, log_warn
from .strategies import (
    DEFAULT_TYPE_KEYS,
    DirectFieldStrategy,
    InstanceLookupStrategy,
    InstancePatternStrategy,
    PayloadScanStrategy,
)

if TYPE_CHECKING:
    from ..collaborators import InstanceTypeLookup
    from ..event_bridge import EventBridge
    from ..registry import TypeRegistry
    from ..types import CallbackEvent
    from .base_strategy import ResolutionStrategy


@dataclass(frozen=True)
class TypeResolution:
    """A recovered approval type and the strategy that found it."""

    type_id: str
    strategy: str


class TypeResolver:
    """Priority-ordered chain of type resolution strategies.

    Safe to share across concurrent callbacks: the chain is only
    modified under a lock, and resolve() iterates over a snapshot.
    """

    def __init__(
        self,
        registry: TypeRegistry,
        *,
        event_bridge: EventBridge | None = None,
    ) -> None:
        """Initialize an empty chain.

        Args:
            registry: Registry used by strategies to check candidates.
            event_bridge: Optional bridge receiving resolution events.
        """
        self._registry = registry
        self._event_bridge = event_bridge
        self._strategies: list[ResolutionStrategy] = []
        self._strategies_by_name: dict[str, ResolutionStrategy] = {}
        self._lock = threading.RLock()

    @property
    def registry(self) -> TypeRegistry:
        """The registry strategies check candidates against."""
        return self._registry

    @classmethod
    def default(
        cls,
        registry: TypeRegistry,
        *,
        lookup: InstanceTypeLookup | None = None,
        separator: str = "_",
        payload_keys: Sequence[str] = DEFAULT_TYPE_KEYS,
        event_bridge: EventBridge | None = None,
    ) -> TypeResolver:
        """Create a chain with the built-in strategies.

        Args:
            registry: Registry used by strategies to check candidates.
            lookup: External instance lookup; its strategy is only added
                when given.
            separator: Instance id segment separator.
            payload_keys: Payload keys naming the approval type.
            event_bridge: Optional bridge receiving resolution events.

        Returns:
            Configured TypeResolver.
        """
        resolver = cls(registry, event_bridge=event_bridge)
        resolver.add_strategy(DirectFieldStrategy())
        resolver.add_strategy(InstancePatternStrategy(separator=separator))
        resolver.add_strategy(PayloadScanStrategy(keys=payload_keys))
        if lookup is not None:
            resolver.add_strategy(InstanceLookupStrategy(lookup))
        return resolver

    def add_strategy(self, strategy: ResolutionStrategy) -> TypeResolver:
        """Add a strategy to the chain.

        Strategies are kept sorted by priority (lower = first). Adding a
        strategy whose name is already present replaces the old one.

        Returns:
            Self for method chaining.
        """
        with self._lock:
            existing = self._strategies_by_name.pop(strategy.name, None)
            if existing is not None:
                self._strategies.remove(existing)
            self._strategies.append(strategy)
            self._strategies.sort(key=lambda s: s.priority)
            self._strategies_by_name[strategy.name] = strategy
        return self

    def remove_strategy(self, name: str) -> ResolutionStrategy | None:
        """Remove a strategy by name.

        Returns:
            Removed strategy or None if not found.
        """
        with self._lock:
            strategy = self._strategies_by_name.pop(name, None)
            if strategy:
                self._strategies.remove(strategy)
            return strategy

    def get_strategy(self, name: str) -> ResolutionStrategy | None:
        """Get a strategy by name."""
        return self._strategies_by_name.get(name)

    async def resolve(self, event: CallbackEvent) -> TypeResolution | None:
        """Recover the approval type of a callback event.

        Args:
            event: The inbound callback event.

        Returns:
            TypeResolution, or None if no strategy produced a type id.
        """
        with self._lock:
            strategies = list(self._strategies)

        fields = {"instance_id": event.instance_id, "event_id": event.event_id or ""}

        for strategy in strategies:
            if not strategy.can_resolve(event):
                log_trace(f"TypeResolver: '{strategy.name}' not applicable", fields)
                continue

            try:
                type_id = strategy.resolve(event, self._registry)
                if inspect.isawaitable(type_id):
                    type_id = await type_id
            except Exception as e:
                log_warn(
                    f"TypeResolver: strategy '{strategy.name}' failed: {e}",
                    {**fields, "error_type": type(e).__name__},
                )
                continue

            if not type_id:
                log_trace(f"TypeResolver: '{strategy.name}' found nothing", fields)
                continue

            log_debug(
                f"TypeResolver: Resolved '{type_id}' via '{strategy.name}'",
                {**fields, "type_id": type_id, "strategy": strategy.name},
            )
            self._publish(
                EventNames.TYPE_RESOLVED,
                {**fields, "type_id": type_id, "strategy": strategy.name},
            )
            return TypeResolution(type_id=type_id, strategy=strategy.name)

        log_info("TypeResolver: No strategy could resolve the approval type", fields)
        self._publish(EventNames.TYPE_UNRESOLVED, fields)
        return None

    def chain_info(self) -> list[dict[str, Any]]:
        """Get chain info for debugging."""
        return [
            {
                "name": strategy.name,
                "priority": strategy.priority,
                "class": strategy.__class__.__name__,
            }
            for strategy in self._strategies
        ]

    @property
    def strategy_names(self) -> list[str]:
        """Names of strategies in priority order."""
        return [s.name for s in self._strategies]

    def list_strategies(self) -> list[tuple[str, int]]:
        """List strategies with their priorities, in priority order."""
        return [(s.name, s.priority) for s in self._strategies]

    def __len__(self) -> int:
        return len(self._strategies)

    def _publish(self, event_name: str, payload: dict[str, Any]) -> None:
        if self._event_bridge is not None:
            self._event_bridge.publish(event_name, payload)


__all__ = ["TypeResolution", "TypeResolver"]
