"""Payload scan strategy (priority 30).

Looks inside the raw form payload for a field naming the approval type.
Payloads may be a JSON string, a mapping, or the platform's list of form
widgets (``[{"id": ..., "name": ..., "value": ...}, ...]``), in which
case a widget whose id or name matches one of the keys supplies the value.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from ...logging import log_debug
from ..base_strategy import ResolutionStrategy

if TYPE_CHECKING:
    from ...registry import TypeRegistry
    from ...types import CallbackEvent

DEFAULT_TYPE_KEYS = ("type", "approval_type")


class PayloadScanStrategy(ResolutionStrategy):
    """Resolve from a type field inside the payload.

    The candidate is accepted only if it is registered; keys are tried
    in order and the first registered value wins.
    """

    def __init__(self, keys: Sequence[str] = DEFAULT_TYPE_KEYS) -> None:
        self.keys = tuple(keys)

    @property
    def name(self) -> str:
        return "payload_scan"

    @property
    def priority(self) -> int:
        return 30

    def can_resolve(self, event: CallbackEvent) -> bool:
        return bool(self.keys) and event.payload not in (None, "")

    def resolve(self, event: CallbackEvent, registry: TypeRegistry) -> str | None:
        try:
            data = event.payload_data()
        except (ValueError, RecursionError) as e:
            log_debug(
                f"Payload could not be parsed, skipping scan: {e}",
                {"instance_id": event.instance_id},
            )
            return None

        for candidate in self.candidates(data):
            if registry.is_registered(candidate):
                return candidate
        return None

    def candidates(self, data: Any) -> list[str]:
        """Collect string values stored under the type keys, in key order."""
        found: list[str] = []
        if isinstance(data, dict):
            for key in self.keys:
                value = data.get(key)
                if isinstance(value, str) and value:
                    found.append(value)
        elif isinstance(data, list):
            for key in self.keys:
                for widget in data:
                    if not isinstance(widget, dict):
                        continue
                    if key not in (widget.get("id"), widget.get("name")):
                        continue
                    value = widget.get("value")
                    if isinstance(value, str) and value:
                        found.append(value)
        return found


__all__ = ["DEFAULT_TYPE_KEYS", "PayloadScanStrategy"]
