"""Error classes for approval-core.

The hierarchy separates routing failures (no handler can be found for a
request or callback), lifecycle failures (a pre-create step of the create
lifecycle failed) and handler/configuration problems.

Every error carries a ``retryable`` flag so hosts can decide whether the
operation is worth repeating and which HTTP status to answer with.

Example:
    >>> from approval_core.errors import ValidationError, UnregisteredHandlerError
    >>>
    >>> try:
    ...     await service.create(request)
    ... except ValidationError as e:
    ...     return 422, e.to_dict()
    ... except UnregisteredHandlerError as e:
    ...     return 404, e.to_dict()
"""

from __future__ import annotations

from typing import Any

from ..types import LifecycleStage


class ApprovalCoreError(Exception):
    """Base class for all approval-core errors.

    Attributes:
        message: Human-readable error message
        retryable: Whether repeating the operation might succeed
        metadata: Additional error context
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        retryable: bool | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Error message
            retryable: Override default retryability
            metadata: Additional context
        """
        super().__init__(message)
        self.message = message
        if retryable is not None:
            self.retryable = retryable
        self.metadata = metadata or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses and event payloads.

        Returns:
            Dictionary with error details
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "retryable": self.retryable,
            "metadata": self.metadata,
        }


# Routing errors


class RoutingError(ApprovalCoreError):
    """No handler can be determined for a request or callback.

    Routing errors are terminal for the event that caused them.
    """

    retryable: bool = False


class UnregisteredHandlerError(RoutingError):
    """No handler descriptor is registered for an approval type.

    Example:
        >>> raise UnregisteredHandlerError("leave_approval")
    """

    def __init__(self, type_id: str, **kwargs: Any) -> None:
        self.type_id = type_id
        super().__init__(
            f"No handler registered for approval type '{type_id}'",
            **kwargs,
        )


class AmbiguousTypeResolutionError(RoutingError):
    """No resolution strategy could recover the approval type of a callback.

    Example:
        >>> raise AmbiguousTypeResolutionError(instance_id="I-1", event_id="evt-9")
    """

    def __init__(
        self,
        *,
        instance_id: str = "",
        event_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.instance_id = instance_id
        self.event_id = event_id
        super().__init__(
            f"Could not resolve approval type for instance '{instance_id}'",
            **kwargs,
        )


# Lifecycle errors


class LifecycleError(ApprovalCoreError):
    """A pre-create step of the create lifecycle failed.

    Attributes:
        stage: The last state reached before the failure.
        type_id: Approval type of the request.
        trace_id: Trace ID of the create call.
    """

    def __init__(
        self,
        message: str,
        *,
        stage: LifecycleStage = LifecycleStage.START,
        type_id: str = "",
        trace_id: str = "",
        retryable: bool | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, retryable=retryable, metadata=metadata)
        self.stage = stage
        self.type_id = type_id
        self.trace_id = trace_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "stage": self.stage.value,
                "type_id": self.type_id,
                "trace_id": self.trace_id,
            }
        )
        return data


class ValidationError(LifecycleError):
    """The handler's validate step rejected the request.

    Retrying with the same request will always fail.
    """

    retryable: bool = False


class PreProcessError(LifecycleError):
    """The handler's pre-process step failed."""

    retryable: bool = False


class CreationFailure(LifecycleError):
    """The remote create call raised or returned a non-success result.

    Retryability is decided from the underlying cause by the
    ErrorClassifier.
    """

    retryable: bool = True


class CreateCancelledError(LifecycleError):
    """The create call was cancelled before the remote instance existed."""

    retryable: bool = True


# Handler errors


class BusinessHandlerException(ApprovalCoreError):
    """An error raised inside a handler's callback status branch.

    Wraps the original error (available as ``original`` and ``__cause__``)
    together with the branch that raised it. Never raised to the webhook
    caller.
    """

    def __init__(self, original: BaseException, *, branch: str, type_id: str = "") -> None:
        self.original = original
        self.branch = branch
        self.type_id = type_id
        super().__init__(
            f"Handler for '{type_id}' failed in {branch}: {original}",
            metadata={"branch": branch, "original_type": type(original).__name__},
        )
        self.__cause__ = original


# Registration and configuration errors


class InvalidHandlerError(ApprovalCoreError):
    """A registration was attempted with an unusable type id or handler."""


class DuplicateRegistrationError(ApprovalCoreError):
    """A type id was registered twice under the ``reject`` duplicate policy."""

    def __init__(self, type_id: str) -> None:
        self.type_id = type_id
        super().__init__(f"Approval type '{type_id}' is already registered")


class ConfigurationError(ApprovalCoreError):
    """Configuration could not be loaded or applied."""


__all__ = [
    # Base
    "ApprovalCoreError",
    # Routing
    "RoutingError",
    "UnregisteredHandlerError",
    "AmbiguousTypeResolutionError",
    # Lifecycle
    "LifecycleError",
    "ValidationError",
    "PreProcessError",
    "CreationFailure",
    "CreateCancelledError",
    # Handler
    "BusinessHandlerException",
    # Registration and configuration
    "InvalidHandlerError",
    "DuplicateRegistrationError",
    "ConfigurationError",
]
