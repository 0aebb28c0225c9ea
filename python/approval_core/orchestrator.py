"""Create lifecycle orchestration.

The ApprovalOrchestrator drives one approval request through a fixed,
strictly sequential lifecycle, delegating every step to the handler
registered for the request's approval type:

    START -> VALIDATED -> PRE_PROCESSED -> CREATED -> POST_PROCESSED

FAILED is reachable from every state before CREATED. A failure there runs
the handler's ``on_create_failure`` hook (best-effort) and raises a typed
LifecycleError. Once the remote instance exists the call can no longer
fail: a post-process error becomes a warning on the returned outcome and
the remote call is never repeated.

Example:
    >>> orchestrator = ApprovalOrchestrator(registry, remote_client)
    >>> outcome = await orchestrator.create(LeaveRequest(employee_id="E1", days=3))
    >>> outcome.instance_id
    'I-1'
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from .context import new_trace_id
from .errors import (
    CreateCancelledError,
    CreationFailure,
    LifecycleError,
    PreProcessError,
    UnregisteredHandlerError,
    ValidationError,
)
from .errors.error_classifier import ErrorClassifier
from .event_bridge import EventNames
from .handler import call_hook
from .logging import log_debug, log_error, log_info, log_warn
from .types import CreateOutcome, CreateResult, LifecycleStage, LogContext

if TYPE_CHECKING:
    from .collaborators import RemoteApprovalClient
    from .event_bridge import EventBridge
    from .registry import TypeRegistry


class ApprovalOrchestrator:
    """Runs the create lifecycle for approval requests.

    Safe to use from concurrent tasks; each call keeps its own state.
    """

    def __init__(
        self,
        registry: TypeRegistry,
        remote_client: RemoteApprovalClient,
        *,
        event_bridge: EventBridge | None = None,
        classifier: ErrorClassifier | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            registry: Registry the request's handler is looked up in.
            remote_client: Client creating the remote approval instance.
            event_bridge: Optional bridge receiving lifecycle events.
            classifier: Decides retryability of remote create failures.
        """
        self._registry = registry
        self._remote_client = remote_client
        self._event_bridge = event_bridge
        self._classifier = classifier or ErrorClassifier()

    async def create(self, request: Any) -> CreateOutcome:
        """Create a remote approval instance for a request.

        Args:
            request: An ApprovalRequest instance.

        Returns:
            CreateOutcome with the remote result and any post-process
            warnings.

        Raises:
            UnregisteredHandlerError: No handler serves the request type.
            ValidationError: The handler rejected the request.
            PreProcessError: The handler's pre-process step failed.
            CreationFailure: The remote create raised or did not succeed.
            Exception: Whatever the handler factory raised, unchanged,
                after it is logged with the trace id.
            asyncio.CancelledError: The call was cancelled before the
                remote instance existed (after running the failure hook).
        """
        trace_id = new_trace_id()
        type_id = _request_type_id(request)

        descriptor = self._registry.resolve_typed(type(request))
        if descriptor is None:
            log_warn(
                f"No handler registered for approval type '{type_id}'",
                LogContext(trace_id=trace_id, type_id=type_id, operation="create"),
            )
            raise UnregisteredHandlerError(type_id or type(request).__name__)

        type_id = descriptor.type_id
        try:
            handler = descriptor.create_handler()
        except Exception as e:
            log_error(
                f"Handler construction failed for '{type_id}': {e}",
                LogContext(trace_id=trace_id, type_id=type_id, operation="create"),
            )
            raise
        stage = LifecycleStage.START
        self._transition(trace_id, type_id, stage)

        try:
            try:
                await call_hook(handler.validate, request)
            except Exception as e:
                raise ValidationError(
                    f"Validation failed: {e}",
                    stage=stage,
                    type_id=type_id,
                    trace_id=trace_id,
                ) from e
            stage = LifecycleStage.VALIDATED
            self._transition(trace_id, type_id, stage)

            try:
                await call_hook(handler.pre_process, request)
            except Exception as e:
                raise PreProcessError(
                    f"Pre-process failed: {e}",
                    stage=stage,
                    type_id=type_id,
                    trace_id=trace_id,
                ) from e
            stage = LifecycleStage.PRE_PROCESSED
            self._transition(trace_id, type_id, stage)

            result = await self._create_remote(request, stage, type_id, trace_id)
            stage = LifecycleStage.CREATED
            self._transition(trace_id, type_id, stage, instance_id=result.instance_id)

        except asyncio.CancelledError as e:
            cancelled = CreateCancelledError(
                "Create was cancelled before the remote instance existed",
                stage=stage,
                type_id=type_id,
                trace_id=trace_id,
            )
            cancelled.__cause__ = e
            await self._fail(handler, request, cancelled)
            raise

        except LifecycleError as error:
            await self._fail(handler, request, error)
            raise

        warnings: list[str] = []
        try:
            await call_hook(handler.post_process, request, result)
            stage = LifecycleStage.POST_PROCESSED
            self._transition(trace_id, type_id, stage, instance_id=result.instance_id)
        except (Exception, asyncio.CancelledError) as e:
            warning = f"Post-process failed: {type(e).__name__}: {e}"
            warnings.append(warning)
            log_warn(
                warning,
                LogContext(
                    trace_id=trace_id,
                    type_id=type_id,
                    instance_id=result.instance_id,
                    operation="create",
                    stage=LifecycleStage.CREATED.value,
                ),
            )
            self._publish(
                EventNames.LIFECYCLE_WARNING,
                {
                    "trace_id": trace_id,
                    "type_id": type_id,
                    "instance_id": result.instance_id,
                    "warning": warning,
                },
            )

        log_info(
            f"Approval instance created: {result.instance_id}",
            LogContext(
                trace_id=trace_id,
                type_id=type_id,
                instance_id=result.instance_id,
                operation="create",
            ),
        )
        return CreateOutcome(result=result, type_id=type_id, trace_id=trace_id, warnings=warnings)

    async def _create_remote(
        self,
        request: Any,
        stage: LifecycleStage,
        type_id: str,
        trace_id: str,
    ) -> CreateResult:
        try:
            result = await call_hook(self._remote_client.create_instance, request)
            if not isinstance(result, CreateResult):
                result = CreateResult.model_validate(result)
        except Exception as e:
            raise CreationFailure(
                f"Remote create failed: {e}",
                stage=stage,
                type_id=type_id,
                trace_id=trace_id,
                retryable=self._classifier.retryable(e),
                metadata={"error_type": type(e).__name__},
            ) from e

        if not result.success:
            raise CreationFailure(
                f"Remote create was not successful: {result.message or 'no message'}",
                stage=stage,
                type_id=type_id,
                trace_id=trace_id,
                retryable=False,
            )
        return result

    async def _fail(self, handler: Any, request: Any, error: LifecycleError) -> None:
        """Report a pre-create failure and run the failure hook best-effort."""
        log_error(
            f"Create failed at {error.stage.value}: {error.message}",
            LogContext(
                trace_id=error.trace_id,
                type_id=error.type_id,
                operation="create",
                stage=LifecycleStage.FAILED.value,
            ),
        )
        self._publish(
            EventNames.LIFECYCLE_FAILED,
            {
                "trace_id": error.trace_id,
                "type_id": error.type_id,
                "stage": error.stage.value,
                "error": error.to_dict(),
            },
        )

        try:
            await call_hook(handler.on_create_failure, request, error)
        except Exception as hook_error:
            log_error(
                f"on_create_failure hook raised: {hook_error}",
                {
                    "trace_id": error.trace_id,
                    "type_id": error.type_id,
                    "error_type": type(hook_error).__name__,
                },
            )

    def _transition(
        self,
        trace_id: str,
        type_id: str,
        stage: LifecycleStage,
        *,
        instance_id: str | None = None,
    ) -> None:
        log_debug(
            f"Create lifecycle reached {stage.value}",
            LogContext(
                trace_id=trace_id,
                type_id=type_id,
                instance_id=instance_id,
                operation="create",
                stage=stage.value,
            ),
        )
        self._publish(
            EventNames.LIFECYCLE_TRANSITION,
            {"trace_id": trace_id, "type_id": type_id, "stage": stage.value},
        )

    def _publish(self, event_name: str, payload: dict[str, Any]) -> None:
        if self._event_bridge is not None:
            self._event_bridge.publish(event_name, payload)


def _request_type_id(request: Any) -> str:
    type_id_fn = getattr(request, "approval_type_id", None)
    if callable(type_id_fn):
        return type_id_fn() or ""
    return ""


__all__ = ["ApprovalOrchestrator"]
