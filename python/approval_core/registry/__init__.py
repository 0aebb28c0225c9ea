"""Approval type registry.

Maps approval type ids to handler descriptors. See TypeRegistry.
"""

from __future__ import annotations

from .class_lookup import import_class, looks_like_class_path
from .handler_descriptor import HandlerDescriptor, infer_request_type
from .type_registry import DuplicatePolicy, TypeRegistry

__all__ = [
    "DuplicatePolicy",
    "HandlerDescriptor",
    "TypeRegistry",
    "import_class",
    "infer_request_type",
    "looks_like_class_path",
]
