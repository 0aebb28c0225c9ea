"""Built-in type resolution strategies."""

from __future__ import annotations

from .direct_field import DirectFieldStrategy
from .instance_lookup import InstanceLookupStrategy
from .instance_pattern import InstancePatternStrategy
from .payload_scan import DEFAULT_TYPE_KEYS, PayloadScanStrategy

__all__ = [
    "DEFAULT_TYPE_KEYS",
    "DirectFieldStrategy",
    "InstanceLookupStrategy",
    "InstancePatternStrategy",
    "PayloadScanStrategy",
]
