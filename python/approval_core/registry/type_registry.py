"""Type registry mapping approval types to handler descriptors.

The TypeRegistry is the single source of truth for which handler serves
which approval type. It is created explicitly and passed to every
component that needs it; there is no process-wide instance.

Supports multiple registration modes:
- Manual registration via register()
- Handler classes declaring their type via register_handler_class()
- Dotted class paths from configuration via register_class_path()
- Package scanning via discover_handlers()

Example:
    >>> registry = TypeRegistry()
    >>> registry.register("leave_approval", LeaveApprovalHandler, request_type=LeaveRequest)
    >>>
    >>> descriptor = registry.resolve("leave_approval")
    >>> handler = descriptor.create_handler()
    >>>
    >>> count = registry.discover_handlers("myapp.approvals")
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
import threading
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..errors import DuplicateRegistrationError, InvalidHandlerError
from ..event_bridge import EventNames
from ..handler import ApprovalHandlerBase, is_handler
from ..logging import log_debug, log_error, log_info, log_warn
from ..types import ApprovalRequest
from .class_lookup import import_class
from .handler_descriptor import HandlerDescriptor, infer_request_type

if TYPE_CHECKING:
    from types import ModuleType

    from ..event_bridge import EventBridge


class DuplicatePolicy(str, Enum):
    """What to do when a type id is registered twice."""

    LAST_WINS = "last_wins"
    """Replace the existing descriptor and log a warning."""

    REJECT = "reject"
    """Raise DuplicateRegistrationError."""


class TypeRegistry:
    """Registry of approval handler descriptors keyed by approval type id.

    Writes are serialized by an internal lock. Lookups read a single
    dict entry; a descriptor captured by an in-flight call is unaffected
    by later registrations.

    Attributes:
        duplicate_policy: Behavior on re-registration of a type id.
    """

    def __init__(
        self,
        *,
        duplicate_policy: DuplicatePolicy | str = DuplicatePolicy.LAST_WINS,
        event_bridge: EventBridge | None = None,
    ) -> None:
        """Initialize an empty registry.

        Args:
            duplicate_policy: ``last_wins`` (default) or ``reject``.
            event_bridge: Optional bridge receiving ``handler.registered``.
        """
        self._descriptors: dict[str, HandlerDescriptor] = {}
        self._lock = threading.RLock()
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)
        self._event_bridge = event_bridge

    def register(
        self,
        type_id: str,
        handler_factory: Any,
        *,
        request_type: type[ApprovalRequest] | None = None,
        description: str | None = None,
    ) -> HandlerDescriptor:
        """Register a handler for an approval type.

        Args:
            type_id: Approval type id (non-empty, case-sensitive).
            handler_factory: Handler class, zero-argument factory, or
                handler instance.
            request_type: Request model for decoding callbacks. Defaults
                to the handler's declared ``request_type``.
            description: Optional description for introspection.

        Returns:
            The stored descriptor.

        Raises:
            InvalidHandlerError: If the type id is empty or the factory is
                neither a handler nor callable.
            DuplicateRegistrationError: If the type id is already
                registered and the policy is ``reject``.

        Example:
            >>> registry.register("leave_approval", LeaveApprovalHandler)
        """
        if not isinstance(type_id, str) or not type_id.strip():
            raise InvalidHandlerError(f"Approval type id must be a non-empty string, got {type_id!r}")

        if not (is_handler(handler_factory) or callable(handler_factory)):
            raise InvalidHandlerError(
                f"Handler for '{type_id}' must be a handler class, factory or instance, "
                f"got {type(handler_factory).__name__}"
            )

        if request_type is not None and not (
            isinstance(request_type, type) and issubclass(request_type, ApprovalRequest)
        ):
            raise InvalidHandlerError(
                f"request_type for '{type_id}' must be an ApprovalRequest subclass, got {request_type!r}"
            )

        descriptor = HandlerDescriptor(
            type_id=type_id,
            factory=handler_factory,
            request_type=request_type or infer_request_type(handler_factory),
            description=description,
        )

        with self._lock:
            overwritten = type_id in self._descriptors
            if overwritten:
                if self.duplicate_policy is DuplicatePolicy.REJECT:
                    raise DuplicateRegistrationError(type_id)
                log_warn(
                    f"Overwriting existing handler: {type_id}",
                    {
                        "type_id": type_id,
                        "previous": self._descriptors[type_id].factory_name,
                        "replacement": descriptor.factory_name,
                    },
                )
            self._descriptors[type_id] = descriptor

        log_info(
            f"Registered handler: {type_id} -> {descriptor.factory_name}",
            {"type_id": type_id, "request_type": descriptor.request_type.__name__},
        )
        if self._event_bridge is not None:
            self._event_bridge.publish(
                EventNames.HANDLER_REGISTERED,
                {
                    "type_id": type_id,
                    "factory": descriptor.factory_name,
                    "overwritten": overwritten,
                },
            )
        return descriptor

    def register_handler_class(self, handler_class: type) -> HandlerDescriptor:
        """Register a handler class under the approval type it declares.

        The type id is taken from the class's ``approval_type_id()`` (or
        ``approval_type`` attribute), falling back to its request type.

        Raises:
            InvalidHandlerError: If the class declares no approval type.
        """
        type_id = _declared_type_id(handler_class)
        if not type_id:
            raise InvalidHandlerError(
                f"{getattr(handler_class, '__name__', handler_class)!r} declares no approval type"
            )
        return self.register(type_id, handler_class)

    def register_class_path(self, type_id: str, class_path: str) -> HandlerDescriptor:
        """Import a handler class by dotted path and register it.

        Args:
            type_id: Approval type id.
            class_path: Handler class path, e.g. ``myapp.approvals.LeaveHandler``.

        Raises:
            InvalidHandlerError: If the class cannot be imported.
        """
        handler_class = import_class(class_path)
        if handler_class is None:
            raise InvalidHandlerError(f"Cannot import handler class '{class_path}' for '{type_id}'")
        return self.register(type_id, handler_class)

    def unregister(self, type_id: str) -> bool:
        """Unregister a handler.

        Returns:
            True if the handler was unregistered, False if not found.
        """
        with self._lock:
            if type_id in self._descriptors:
                del self._descriptors[type_id]
                log_debug(f"Unregistered handler: {type_id}")
                return True
        return False

    def resolve(self, type_id: str | None) -> HandlerDescriptor | None:
        """Look up the descriptor registered for a type id.

        Never raises; absence is reported as None.
        """
        if not type_id:
            return None
        return self._descriptors.get(type_id)

    def resolve_typed(self, request_type: type) -> HandlerDescriptor | None:
        """Look up the descriptor for a request model class.

        The type id is derived from ``request_type.approval_type_id()``.
        """
        type_id_fn = getattr(request_type, "approval_type_id", None)
        if not callable(type_id_fn):
            return None
        return self.resolve(type_id_fn())

    def is_registered(self, type_id: str | None) -> bool:
        """Check if an approval type has a registered handler."""
        return bool(type_id) and type_id in self._descriptors

    def list_registered(self) -> frozenset[str]:
        """Return a snapshot of the registered approval type ids."""
        with self._lock:
            return frozenset(self._descriptors)

    def descriptors(self) -> list[HandlerDescriptor]:
        """Return a snapshot of all descriptors, sorted by type id."""
        with self._lock:
            return [self._descriptors[key] for key in sorted(self._descriptors)]

    def handler_count(self) -> int:
        """Get the number of registered handlers."""
        return len(self._descriptors)

    def clear(self) -> None:
        """Clear all registered handlers."""
        with self._lock:
            self._descriptors.clear()
        log_debug("Cleared all handlers from registry")

    def discover_handlers(
        self,
        package_name: str,
        base_class: type | None = None,
    ) -> int:
        """Discover and register handlers from a package.

        Scans the package and all sub-packages for concrete subclasses of
        ``base_class`` (default: ApprovalHandlerBase) that declare an
        approval type. Classes are registered from the module defining
        them only, so re-exports are not registered twice.

        Args:
            package_name: Package to scan (e.g., "myapp.approvals").
            base_class: Base class to filter by.

        Returns:
            Number of handlers discovered and registered.
        """
        base = base_class or ApprovalHandlerBase
        discovered = 0

        try:
            package = importlib.import_module(package_name)
        except ImportError as e:
            log_error(f"Failed to import package {package_name}: {e}")
            return 0

        discovered += self._scan_module_for_handlers(package, base)

        if not hasattr(package, "__path__"):
            log_info(f"Discovered {discovered} handlers in {package_name}")
            return discovered

        for _importer, module_name, _is_pkg in pkgutil.walk_packages(
            package.__path__,
            prefix=f"{package_name}.",
        ):
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                log_warn(f"Failed to scan module {module_name}: {e}")
                continue
            discovered += self._scan_module_for_handlers(module, base)

        log_info(f"Discovered {discovered} handlers in {package_name}")
        return discovered

    def _scan_module_for_handlers(self, module: ModuleType, base: type) -> int:
        discovered = 0

        for name in dir(module):
            obj = getattr(module, name)

            if not isinstance(obj, type) or obj is base:
                continue
            if obj.__module__ != module.__name__:
                continue
            try:
                if not issubclass(obj, base):
                    continue
            except TypeError:
                continue
            if inspect.isabstract(obj):
                continue

            type_id = _declared_type_id(obj)
            if not type_id:
                continue

            self.register(type_id, obj)
            discovered += 1

        return discovered

    def __contains__(self, type_id: object) -> bool:
        return isinstance(type_id, str) and self.is_registered(type_id)

    def __len__(self) -> int:
        return self.handler_count()


def _declared_type_id(handler_class: Any) -> str:
    type_id_fn = getattr(handler_class, "approval_type_id", None)
    if callable(type_id_fn):
        return type_id_fn() or ""
    type_id = getattr(handler_class, "approval_type", "") or ""
    if type_id:
        return type_id
    return infer_request_type(handler_class).approval_type_id()


__all__ = ["DuplicatePolicy", "TypeRegistry"]
