"""Callback status dispatch.

The CallbackDispatcher routes one callback event to the status branch of
its handler:

    approved   -> on_approved(context)
    rejected   -> on_rejected(context)
    cancelled  -> on_cancelled(context)
    anything else -> on_unknown_status(context)

Status tags are matched case-insensitively. An error raised inside a
branch is handed to ``on_business_exception(context, error)`` exactly
once; if that hook raises too, the error is logged and suppressed. No
branch is ever retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .context import ApprovalContext, new_trace_id
from .errors import BusinessHandlerException
from .event_bridge import EventNames
from .handler import call_hook
from .logging import log_error, log_info, log_warn
from .types import CallbackStatus, DispatchOutcome, LogContext

if TYPE_CHECKING:
    from .event_bridge import EventBridge
    from .registry import HandlerDescriptor
    from .types import CallbackEvent

BRANCHES: dict[CallbackStatus, str] = {
    CallbackStatus.APPROVED: "on_approved",
    CallbackStatus.REJECTED: "on_rejected",
    CallbackStatus.CANCELLED: "on_cancelled",
    CallbackStatus.UNKNOWN: "on_unknown_status",
}


class CallbackDispatcher:
    """Drives the callback status state machine for a resolved handler."""

    def __init__(self, *, event_bridge: EventBridge | None = None) -> None:
        self._event_bridge = event_bridge

    async def dispatch(
        self,
        descriptor: HandlerDescriptor,
        event: CallbackEvent,
        *,
        strategy: str = "explicit",
        trace_id: str | None = None,
    ) -> DispatchOutcome:
        """Dispatch a callback event to the handler's status branch.

        The payload is decoded once, before branching. Business errors
        never propagate; cancellation does.

        Args:
            descriptor: Descriptor of the resolved handler.
            event: The inbound callback event.
            strategy: Name of the strategy that resolved the type.
            trace_id: Trace ID to use; a new one is generated if omitted.

        Returns:
            DispatchOutcome describing the branch taken.

        Raises:
            Exception: Whatever the handler factory raised, unchanged,
                after it is logged with the trace id.
        """
        trace_id = trace_id or new_trace_id()
        try:
            handler = descriptor.create_handler()
        except Exception as e:
            log_error(
                f"Handler construction failed for '{descriptor.type_id}': {e}",
                LogContext(
                    trace_id=trace_id,
                    type_id=descriptor.type_id,
                    instance_id=event.instance_id,
                    event_id=event.event_id,
                    operation="callback",
                ),
            )
            raise
        context = ApprovalContext.from_callback(
            event,
            descriptor.request_type,
            descriptor.type_id,
            trace_id=trace_id,
        )
        status = context.status
        branch = BRANCHES[status]
        log_context = LogContext(
            trace_id=trace_id,
            type_id=descriptor.type_id,
            instance_id=event.instance_id,
            event_id=event.event_id,
            operation="callback",
            stage=branch,
        )

        if status is CallbackStatus.UNKNOWN:
            log_warn(f"Unknown callback status: {event.status!r}", log_context)

        try:
            await call_hook(getattr(handler, branch), context)
        except Exception as e:
            await self._handle_business_exception(handler, context, branch, e, log_context)
            return DispatchOutcome(
                type_id=descriptor.type_id,
                strategy=strategy,
                status=status,
                instance_id=event.instance_id,
                trace_id=trace_id,
                handled=False,
                error=str(e),
                received_at=context.received_at,
            )

        log_info(f"Callback dispatched to {branch}", log_context)
        self._publish(
            EventNames.CALLBACK_DISPATCHED,
            {
                "trace_id": trace_id,
                "type_id": descriptor.type_id,
                "instance_id": event.instance_id,
                "status": status.value,
            },
        )
        return DispatchOutcome(
            type_id=descriptor.type_id,
            strategy=strategy,
            status=status,
            instance_id=event.instance_id,
            trace_id=trace_id,
            received_at=context.received_at,
        )

    async def _handle_business_exception(
        self,
        handler: Any,
        context: ApprovalContext[Any],
        branch: str,
        error: Exception,
        log_context: LogContext,
    ) -> None:
        wrapped = BusinessHandlerException(error, branch=branch, type_id=context.type_id)
        log_error(wrapped.message, log_context)
        self._publish(
            EventNames.CALLBACK_BUSINESS_ERROR,
            {
                "trace_id": context.trace_id,
                "type_id": context.type_id,
                "instance_id": context.instance_id,
                "status": context.status.value,
                "error": wrapped.to_dict(),
            },
        )

        try:
            await call_hook(handler.on_business_exception, context, error)
        except Exception as hook_error:
            log_error(
                f"on_business_exception hook raised, suppressing: {hook_error}",
                {
                    "trace_id": context.trace_id,
                    "type_id": context.type_id,
                    "instance_id": context.instance_id,
                    "error_type": type(hook_error).__name__,
                },
            )

    def _publish(self, event_name: str, payload: dict[str, Any]) -> None:
        if self._event_bridge is not None:
            self._event_bridge.publish(event_name, payload)


__all__ = ["BRANCHES", "CallbackDispatcher"]
