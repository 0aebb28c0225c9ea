"""Import handler classes from dotted class paths.

Used for configuration-driven registration, where handlers are named as
``package.module.ClassName`` strings.

Example:
    >>> handler_class = import_class("myapp.approvals.LeaveApprovalHandler")
    >>> handler_class.__name__
    'LeaveApprovalHandler'
"""

from __future__ import annotations

import importlib
import re

from ..logging import log_debug

# module.path.ClassName: at least one dot, ends with a capitalized identifier
CLASS_PATTERN = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)*\.[A-Z][a-zA-Z0-9_]*$"
)


def looks_like_class_path(class_path: str) -> bool:
    """Check whether a string looks like a ``module.ClassName`` path."""
    return bool(CLASS_PATTERN.match(class_path))


def import_class(class_path: str) -> type | None:
    """Import a class from a module path string.

    Args:
        class_path: Full class path (e.g., "module.ClassName").

    Returns:
        The class or None if the module or attribute cannot be found,
        or the attribute is not a class.
    """
    if not looks_like_class_path(class_path):
        log_debug(f"Not a class path: {class_path}")
        return None

    module_path, class_name = class_path.rsplit(".", 1)

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        log_debug(f"Failed to import module {module_path}: {e}")
        return None

    handler_class = getattr(module, class_name, None)
    if handler_class is None:
        log_debug(f"Class {class_name} not found in module {module_path}")
        return None

    if not isinstance(handler_class, type):
        return None

    return handler_class


__all__ = ["CLASS_PATTERN", "import_class", "looks_like_class_path"]
