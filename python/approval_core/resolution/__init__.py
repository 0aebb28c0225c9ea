"""Approval type resolution for callback events.

Built-in Strategies:
- DirectFieldStrategy (priority 10): explicit type field on the event
- InstancePatternStrategy (priority 20): type prefix of the instance id
- PayloadScanStrategy (priority 30): type key inside the form payload
- InstanceLookupStrategy (priority 40): external instance store

Custom Strategies:
Extend ResolutionStrategy and add it with TypeResolver.add_strategy().
"""

from __future__ import annotations

from .base_strategy import ResolutionStrategy
from .strategies import (
    DEFAULT_TYPE_KEYS,
    DirectFieldStrategy,
    InstanceLookupStrategy,
    InstancePatternStrategy,
    PayloadScanStrategy,
)
from .type_resolver import TypeResolution, TypeResolver

__all__ = [
    "ResolutionStrategy",
    "TypeResolution",
    "TypeResolver",
    "DEFAULT_TYPE_KEYS",
    "DirectFieldStrategy",
    "InstanceLookupStrategy",
    "InstancePatternStrategy",
    "PayloadScanStrategy",
]
