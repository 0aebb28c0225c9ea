"""Approval handler contract and base class.

Every approval type is served by one handler. A handler answers the nine
hooks the orchestrator and dispatcher call:

Create lifecycle (optional, no-op by default):
    validate, pre_process, post_process, on_create_failure

Callback branches (required):
    on_approved, on_rejected, on_cancelled, on_unknown_status,
    on_business_exception

Hooks may be coroutine functions or plain functions; the core awaits
whatever they return when it is awaitable.

Example:
    >>> from approval_core.handler import ApprovalHandlerBase
    >>>
    >>> class LeaveApprovalHandler(ApprovalHandlerBase):
    ...     approval_type = "leave_approval"
    ...     request_type = LeaveRequest
    ...
    ...     async def validate(self, request):
    ...         if request.days <= 0:
    ...             raise ValueError("days must be positive")
    ...
    ...     async def on_approved(self, context):
    ...         await grant_leave(context.data)
    ...
    ...     async def on_rejected(self, context): ...
    ...     async def on_cancelled(self, context): ...
    ...     async def on_unknown_status(self, context): ...
    ...     async def on_business_exception(self, context, error): ...
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from ..types import ApprovalRequest

if TYPE_CHECKING:
    from ..context import ApprovalContext
    from ..errors import LifecycleError
    from ..types import CreateResult

CREATE_HOOKS = ("validate", "pre_process", "post_process", "on_create_failure")
CALLBACK_HOOKS = (
    "on_approved",
    "on_rejected",
    "on_cancelled",
    "on_unknown_status",
    "on_business_exception",
)
HANDLER_HOOKS = CREATE_HOOKS + CALLBACK_HOOKS


@runtime_checkable
class ApprovalHandler(Protocol):
    """Structural contract for approval handlers."""

    def validate(self, request: Any) -> Any: ...

    def pre_process(self, request: Any) -> Any: ...

    def post_process(self, request: Any, result: CreateResult) -> Any: ...

    def on_create_failure(self, request: Any, error: LifecycleError) -> Any: ...

    def on_approved(self, context: ApprovalContext[Any]) -> Any: ...

    def on_rejected(self, context: ApprovalContext[Any]) -> Any: ...

    def on_cancelled(self, context: ApprovalContext[Any]) -> Any: ...

    def on_unknown_status(self, context: ApprovalContext[Any]) -> Any: ...

    def on_business_exception(self, context: ApprovalContext[Any], error: BaseException) -> Any: ...


def is_handler(obj: Any) -> bool:
    """Check whether an object (instance or class) exposes every hook."""
    return all(callable(getattr(obj, hook, None)) for hook in HANDLER_HOOKS)


async def call_hook(hook: Any, *args: Any) -> Any:
    """Call a handler hook and await its result if it is awaitable."""
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class ApprovalHandlerBase(ABC):
    """Abstract base class for approval handlers.

    Subclasses implement the five callback branches; the create lifecycle
    hooks default to no-ops.

    Class Attributes:
        approval_type: Approval type id served by this handler. When empty,
            the request type's ``approval_type_id()`` is used.
        request_type: ApprovalRequest subclass callbacks are decoded into.
        handler_version: Version string for the handler (default: "1.0.0").
    """

    approval_type: ClassVar[str] = ""
    request_type: ClassVar[type[ApprovalRequest]] = ApprovalRequest
    handler_version: ClassVar[str] = "1.0.0"

    @classmethod
    def approval_type_id(cls) -> str:
        """Return the approval type id served by this handler class."""
        return cls.approval_type or cls.request_type.approval_type_id()

    # Create lifecycle hooks

    async def validate(self, request: Any) -> None:
        """Reject the request by raising. No-op by default."""

    async def pre_process(self, request: Any) -> None:
        """Normalize or enrich the request in place. No-op by default."""

    async def post_process(self, request: Any, result: CreateResult) -> None:
        """Run follow-up work once the remote instance exists. No-op by default."""

    async def on_create_failure(self, request: Any, error: LifecycleError) -> None:
        """Compensate for a failed create. No-op by default."""

    # Callback branches

    @abstractmethod
    async def on_approved(self, context: ApprovalContext[Any]) -> None:
        """Handle an approved instance."""
        ...

    @abstractmethod
    async def on_rejected(self, context: ApprovalContext[Any]) -> None:
        """Handle a rejected instance."""
        ...

    @abstractmethod
    async def on_cancelled(self, context: ApprovalContext[Any]) -> None:
        """Handle an instance withdrawn by the applicant."""
        ...

    @abstractmethod
    async def on_unknown_status(self, context: ApprovalContext[Any]) -> None:
        """Handle any status outside approved, rejected and cancelled."""
        ...

    @abstractmethod
    async def on_business_exception(
        self,
        context: ApprovalContext[Any],
        error: BaseException,
    ) -> None:
        """Handle an error raised inside one of the other branches.

        Errors raised here are logged and suppressed by the dispatcher.
        """
        ...

    @property
    def name(self) -> str:
        """Return the approval type id, or the class name if none is set."""
        return self.approval_type_id() or self.__class__.__name__

    @property
    def version(self) -> str:
        return self.handler_version

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(approval_type={self.name!r}, version={self.version!r})"


__all__ = [
    "ApprovalHandler",
    "ApprovalHandlerBase",
    "CALLBACK_HOOKS",
    "CREATE_HOOKS",
    "HANDLER_HOOKS",
    "call_hook",
    "is_handler",
]
