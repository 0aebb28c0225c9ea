"""Handler descriptor type for the type registry.

A HandlerDescriptor binds one approval type id to something that can
produce a handler (a class, a factory callable, or a ready instance)
and to the request model callbacks of that type are decoded into.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..errors import InvalidHandlerError
from ..handler import is_handler
from ..types import ApprovalRequest


@dataclass(frozen=True)
class HandlerDescriptor:
    """Registered association of an approval type to its handler.

    Attributes:
        type_id: Approval type id the handler serves.
        factory: Handler class, zero-argument factory callable, or instance.
        request_type: ApprovalRequest subclass for decoding callbacks.
        description: Optional human-readable description.

    Example:
        >>> descriptor = HandlerDescriptor(
        ...     type_id="leave_approval",
        ...     factory=LeaveApprovalHandler,
        ...     request_type=LeaveRequest,
        ... )
        >>> handler = descriptor.create_handler()
        >>> isinstance(handler, LeaveApprovalHandler)
        True
    """

    type_id: str
    factory: Any
    request_type: type[ApprovalRequest] = ApprovalRequest
    description: str | None = None

    def create_handler(self) -> Any:
        """Produce a handler from the registered factory.

        A class is instantiated with no arguments, a factory callable is
        called, and a handler instance is returned as-is.

        Returns:
            Handler instance.

        Raises:
            InvalidHandlerError: If the produced object is not a handler.
        """
        factory = self.factory

        if isinstance(factory, type):
            handler = factory()
        elif is_handler(factory):
            # Instances are checked before plain callables; a handler
            # instance may itself be callable.
            handler = factory
        else:
            handler = factory()

        if not is_handler(handler):
            raise InvalidHandlerError(
                f"Factory for '{self.type_id}' produced {type(handler).__name__}, "
                "which does not implement the approval handler hooks"
            )
        return handler

    @property
    def factory_name(self) -> str:
        """Name of the factory for logs and introspection."""
        if isinstance(self.factory, type) or callable(self.factory):
            return getattr(self.factory, "__name__", type(self.factory).__name__)
        return type(self.factory).__name__

    def to_dict(self) -> dict[str, Any]:
        return {
            "type_id": self.type_id,
            "factory": self.factory_name,
            "request_type": self.request_type.__name__,
            "description": self.description,
        }


def infer_request_type(factory: Any) -> type[ApprovalRequest]:
    """Read the request model declared by a handler class or instance.

    Falls back to ``ApprovalRequest`` when none is declared.
    """
    request_type = getattr(factory, "request_type", None)
    if isinstance(request_type, type) and issubclass(request_type, ApprovalRequest):
        return request_type
    return ApprovalRequest


__all__ = ["HandlerDescriptor", "infer_request_type"]
