"""Approval service facade exposed to host applications.

ApprovalService ties the registry, resolver, orchestrator and dispatcher
together behind four operations:

    await service.create(request)              -> CreateOutcome
    await service.handle_callback(event)       -> DispatchOutcome
    service.is_supported("leave_approval")     -> bool
    service.list_supported_types()             -> ["leave_approval", ...]

Routing failures (UnregisteredHandlerError, AmbiguousTypeResolutionError)
raise out of handle_callback; business errors inside a handler branch
never do.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .context import new_trace_id
from .errors import AmbiguousTypeResolutionError, UnregisteredHandlerError
from .event_bridge import EventNames
from .handler import call_hook
from .logging import log_info, log_warn
from .types import CallbackEvent, DispatchOutcome, LogContext

if TYPE_CHECKING:
    from .collaborators import CallbackLedger
    from .dispatcher import CallbackDispatcher
    from .event_bridge import EventBridge
    from .orchestrator import ApprovalOrchestrator
    from .registry import TypeRegistry
    from .resolution import TypeResolver
    from .types import CreateOutcome

EXPLICIT_STRATEGY = "explicit"

LEDGER_PROCESSED = "processed"
LEDGER_FAILED = "failed"


class ApprovalService:
    """Facade for creating approvals and handling their callbacks."""

    def __init__(
        self,
        registry: TypeRegistry,
        resolver: TypeResolver,
        orchestrator: ApprovalOrchestrator,
        dispatcher: CallbackDispatcher,
        *,
        ledger: CallbackLedger | None = None,
        event_bridge: EventBridge | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            registry: Registry shared by every component.
            resolver: Resolver recovering callback types.
            orchestrator: Create lifecycle driver.
            dispatcher: Callback status dispatcher.
            ledger: Optional duplicate-event guard.
            event_bridge: Optional bridge receiving duplicate events.
        """
        self.registry = registry
        self.resolver = resolver
        self.orchestrator = orchestrator
        self.dispatcher = dispatcher
        self.ledger = ledger
        self.event_bridge = event_bridge

    async def create(self, request: Any) -> CreateOutcome:
        """Create a remote approval instance. See ApprovalOrchestrator.create."""
        return await self.orchestrator.create(request)

    async def handle_callback(
        self,
        event: CallbackEvent | Mapping[str, Any],
        type_id: str | None = None,
    ) -> DispatchOutcome:
        """Route a callback event to its handler's status branch.

        Args:
            event: A CallbackEvent, or the decrypted platform envelope.
            type_id: Explicit approval type; skips resolution when given.

        Returns:
            DispatchOutcome. ``duplicate`` is True when the event id was
            already claimed by an earlier or concurrent call and the
            handler was not called.

        Raises:
            AmbiguousTypeResolutionError: No strategy recovered the type.
            UnregisteredHandlerError: The type has no registered handler.
        """
        if not isinstance(event, CallbackEvent):
            event = CallbackEvent.from_feishu(dict(event))

        trace_id = new_trace_id()

        if type_id:
            strategy = EXPLICIT_STRATEGY
        else:
            resolution = await self.resolver.resolve(event)
            if resolution is None:
                log_warn(
                    "Callback could not be routed: approval type unresolved",
                    LogContext(
                        trace_id=trace_id,
                        instance_id=event.instance_id,
                        event_id=event.event_id,
                        operation="callback",
                    ),
                )
                raise AmbiguousTypeResolutionError(
                    instance_id=event.instance_id,
                    event_id=event.event_id,
                )
            type_id, strategy = resolution.type_id, resolution.strategy

        descriptor = self.registry.resolve(type_id)
        if descriptor is None:
            log_warn(
                f"Callback could not be routed: no handler for '{type_id}'",
                LogContext(
                    trace_id=trace_id,
                    type_id=type_id,
                    instance_id=event.instance_id,
                    event_id=event.event_id,
                    operation="callback",
                ),
            )
            raise UnregisteredHandlerError(type_id)

        if self.ledger is not None and event.event_id:
            if not await call_hook(self.ledger.claim, event.event_id):
                return self._duplicate(event, type_id, strategy, trace_id)

        try:
            outcome = await self.dispatcher.dispatch(
                descriptor,
                event,
                strategy=strategy,
                trace_id=trace_id,
            )
        except BaseException as e:
            if self.ledger is not None and event.event_id:
                await call_hook(self.ledger.record, event.event_id, LEDGER_FAILED, str(e) or type(e).__name__)
            raise

        if self.ledger is not None and event.event_id:
            await call_hook(
                self.ledger.record,
                event.event_id,
                LEDGER_PROCESSED if outcome.handled else LEDGER_FAILED,
                outcome.error,
            )
        return outcome

    def is_supported(self, type_id: str) -> bool:
        """Check if an approval type has a registered handler."""
        return self.registry.is_registered(type_id)

    def is_request_supported(self, request_type: type) -> bool:
        """Check if a request model class has a registered handler."""
        return self.registry.resolve_typed(request_type) is not None

    def list_supported_types(self) -> list[str]:
        """Return the registered approval type ids, sorted."""
        return sorted(self.registry.list_registered())

    def _duplicate(
        self,
        event: CallbackEvent,
        type_id: str,
        strategy: str,
        trace_id: str,
    ) -> DispatchOutcome:
        log_info(
            "Duplicate callback event skipped",
            LogContext(
                trace_id=trace_id,
                type_id=type_id,
                instance_id=event.instance_id,
                event_id=event.event_id,
                operation="callback",
            ),
        )
        if self.event_bridge is not None:
            self.event_bridge.publish(
                EventNames.CALLBACK_DUPLICATE,
                {
                    "type_id": type_id,
                    "instance_id": event.instance_id,
                    "event_id": event.event_id,
                },
            )
        return DispatchOutcome(
            type_id=type_id,
            strategy=strategy,
            status=event.callback_status,
            instance_id=event.instance_id,
            trace_id=trace_id,
            duplicate=True,
        )


__all__ = ["ApprovalService"]
