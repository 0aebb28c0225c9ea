"""
approval-core

Type registry and dispatch core for third-party approval workflows. It
binds approval types to handlers, recovers the type of inbound status
callbacks, drives the create lifecycle and routes callbacks to the
handler's status branches.

Example:
    >>> import approval_core
    >>> from approval_core import ApprovalHandlerBase, ApprovalRequest, build_service
    >>>
    >>> class LeaveRequest(ApprovalRequest):
    ...     approval_type = "leave_approval"
    ...     employee_id: str = ""
    ...     days: int = 0
    >>>
    >>> class LeaveHandler(ApprovalHandlerBase):
    ...     request_type = LeaveRequest
    ...     async def on_approved(self, context): ...
    ...     async def on_rejected(self, context): ...
    ...     async def on_cancelled(self, context): ...
    ...     async def on_unknown_status(self, context): ...
    ...     async def on_business_exception(self, context, error): ...
    >>>
    >>> service = build_service(remote_client=MyFeishuClient())
    >>> service.registry.register_handler_class(LeaveHandler)
    >>>
    >>> outcome = await service.create(LeaveRequest(employee_id="E1", days=3))
    >>> await service.handle_callback({"event": {"instance_code": outcome.instance_id,
    ...                                          "status": "APPROVED"}})

    >>> # Use structured logging
    >>> approval_core.log_info("Processing started", {"trace_id": "abc-123"})
"""

from __future__ import annotations

__version__ = "0.1.0"

from approval_core.bootstrap import build_registry, build_service
from approval_core.collaborators import (
    CallbackLedger,
    InMemoryCallbackLedger,
    InMemoryInstanceTypeLookup,
    InstanceTypeLookup,
    RemoteApprovalClient,
)
from approval_core.config import ApprovalCoreConfig, load_config
from approval_core.context import ApprovalContext
from approval_core.dispatcher import CallbackDispatcher
from approval_core.errors import (
    AmbiguousTypeResolutionError,
    ApprovalCoreError,
    BusinessHandlerException,
    ConfigurationError,
    CreateCancelledError,
    CreationFailure,
    DuplicateRegistrationError,
    InvalidHandlerError,
    LifecycleError,
    PreProcessError,
    RoutingError,
    UnregisteredHandlerError,
    ValidationError,
)
from approval_core.errors.error_classifier import ErrorClassifier
from approval_core.event_bridge import EventBridge, EventNames
from approval_core.handler import (
    ApprovalHandler,
    ApprovalHandlerBase,
    FunctionalApprovalHandler,
)
from approval_core.logging import (
    configure_logging,
    log_debug,
    log_error,
    log_info,
    log_trace,
    log_warn,
    set_log_level,
)
from approval_core.orchestrator import ApprovalOrchestrator
from approval_core.registry import DuplicatePolicy, HandlerDescriptor, TypeRegistry
from approval_core.resolution import (
    DirectFieldStrategy,
    InstanceLookupStrategy,
    InstancePatternStrategy,
    PayloadScanStrategy,
    ResolutionStrategy,
    TypeResolution,
    TypeResolver,
)
from approval_core.service import ApprovalService
from approval_core.types import (
    ApprovalRequest,
    CallbackEvent,
    CallbackStatus,
    CreateOutcome,
    CreateResult,
    DispatchOutcome,
    InstanceDetail,
    LifecycleStage,
    LogContext,
)


def version() -> str:
    """Return the approval-core package version."""
    return __version__


__all__ = [
    # Version
    "__version__",
    "version",
    # Service
    "ApprovalService",
    "build_service",
    "build_registry",
    # Configuration
    "ApprovalCoreConfig",
    "load_config",
    # Registry
    "TypeRegistry",
    "HandlerDescriptor",
    "DuplicatePolicy",
    # Resolution
    "TypeResolver",
    "TypeResolution",
    "ResolutionStrategy",
    "DirectFieldStrategy",
    "InstancePatternStrategy",
    "PayloadScanStrategy",
    "InstanceLookupStrategy",
    # Lifecycle and dispatch
    "ApprovalOrchestrator",
    "CallbackDispatcher",
    "ApprovalContext",
    # Handlers
    "ApprovalHandler",
    "ApprovalHandlerBase",
    "FunctionalApprovalHandler",
    # Collaborators
    "RemoteApprovalClient",
    "InstanceTypeLookup",
    "CallbackLedger",
    "InMemoryInstanceTypeLookup",
    "InMemoryCallbackLedger",
    # Types
    "ApprovalRequest",
    "CallbackEvent",
    "CallbackStatus",
    "CreateOutcome",
    "CreateResult",
    "DispatchOutcome",
    "InstanceDetail",
    "LifecycleStage",
    "LogContext",
    # Events
    "EventBridge",
    "EventNames",
    # Errors
    "ApprovalCoreError",
    "RoutingError",
    "UnregisteredHandlerError",
    "AmbiguousTypeResolutionError",
    "LifecycleError",
    "ValidationError",
    "PreProcessError",
    "CreationFailure",
    "CreateCancelledError",
    "BusinessHandlerException",
    "InvalidHandlerError",
    "DuplicateRegistrationError",
    "ConfigurationError",
    "ErrorClassifier",
    # Logging
    "configure_logging",
    "set_log_level",
    "log_error",
    "log_warn",
    "log_info",
    "log_debug",
    "log_trace",
]
