"""In-process event bridge for approval observability.

This module provides the EventBridge class that wraps pyee's EventEmitter
to publish structured events for registrations, type resolutions,
lifecycle transitions and callback dispatches.

Every event carries a single ``dict`` payload. Listener failures are
logged and never reach the operation that published the event.

Example:
    >>> from approval_core import EventBridge, EventNames
    >>>
    >>> bridge = EventBridge()
    >>> bridge.start()
    >>>
    >>> def on_failed(payload):
    ...     print(f"Create failed at {payload['stage']}")
    ...
    >>> bridge.subscribe(EventNames.LIFECYCLE_FAILED, on_failed)
    >>>
    >>> bridge.stop()
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pyee.base import EventEmitter

from .logging import log_debug, log_info, log_trace, log_warn


class EventNames:
    """Constants for event names used in the event bridge.

    Attributes:
        HANDLER_REGISTERED: A handler descriptor was registered.
        TYPE_RESOLVED: A resolution strategy recovered a callback's type.
        TYPE_UNRESOLVED: No strategy could recover a callback's type.
        LIFECYCLE_TRANSITION: The create lifecycle reached a new stage.
        LIFECYCLE_FAILED: A pre-create step failed.
        LIFECYCLE_WARNING: A post-create step failed (advisory).
        CALLBACK_DISPATCHED: A callback status branch completed.
        CALLBACK_BUSINESS_ERROR: A callback status branch raised.
        CALLBACK_DUPLICATE: A callback event id was already processed.
    """

    HANDLER_REGISTERED = "handler.registered"
    TYPE_RESOLVED = "type.resolved"
    TYPE_UNRESOLVED = "type.unresolved"
    LIFECYCLE_TRANSITION = "lifecycle.transition"
    LIFECYCLE_FAILED = "lifecycle.failed"
    LIFECYCLE_WARNING = "lifecycle.warning"
    CALLBACK_DISPATCHED = "callback.dispatched"
    CALLBACK_BUSINESS_ERROR = "callback.business_error"
    CALLBACK_DUPLICATE = "callback.duplicate"


class EventBridge:
    """In-process event bus for approval-core.

    Components receive the bridge they publish to explicitly; there is no
    process-wide instance.

    Events:
        handler.registered: {type_id, factory, overwritten}
        type.resolved: {type_id, strategy, instance_id, event_id}
        type.unresolved: {instance_id, event_id}
        lifecycle.transition: {trace_id, type_id, stage}
        lifecycle.failed: {trace_id, type_id, stage, error}
        lifecycle.warning: {trace_id, type_id, instance_id, warning}
        callback.dispatched: {trace_id, type_id, instance_id, status}
        callback.business_error: {trace_id, type_id, instance_id, status, error}
        callback.duplicate: {type_id, instance_id, event_id}

    Example:
        >>> bridge = EventBridge()
        >>> bridge.start()
        >>> bridge.subscribe(EventNames.TYPE_RESOLVED, my_handler)
        >>> bridge.publish(EventNames.TYPE_RESOLVED, {"type_id": "leave_approval"})
    """

    def __init__(self) -> None:
        """Initialize the EventBridge.

        Creates a new pyee EventEmitter and sets up the event schema.
        """
        self._emitter = EventEmitter()
        self._active = False
        self._setup_event_schema()

    def _setup_event_schema(self) -> None:
        """Define the event schema for documentation."""
        self._event_schema: dict[str, str] = {
            EventNames.HANDLER_REGISTERED: "{type_id, factory, overwritten}",
            EventNames.TYPE_RESOLVED: "{type_id, strategy, instance_id, event_id}",
            EventNames.TYPE_UNRESOLVED: "{instance_id, event_id}",
            EventNames.LIFECYCLE_TRANSITION: "{trace_id, type_id, stage}",
            EventNames.LIFECYCLE_FAILED: "{trace_id, type_id, stage, error}",
            EventNames.LIFECYCLE_WARNING: "{trace_id, type_id, instance_id, warning}",
            EventNames.CALLBACK_DISPATCHED: "{trace_id, type_id, instance_id, status}",
            EventNames.CALLBACK_BUSINESS_ERROR: "{trace_id, type_id, instance_id, status, error}",
            EventNames.CALLBACK_DUPLICATE: "{type_id, instance_id, event_id}",
        }

    def start(self) -> None:
        """Activate the event bridge.

        Events will only be published when the bridge is active.
        Calling start() multiple times is safe (no-op if already active).
        """
        if self._active:
            return
        self._active = True
        log_info("EventBridge started")

    def stop(self) -> None:
        """Deactivate the event bridge and remove all listeners.

        Calling stop() multiple times is safe (no-op if not active).
        """
        if not self._active:
            return
        self._active = False
        self._emitter.remove_all_listeners()
        log_info("EventBridge stopped")

    def subscribe(self, event: str, handler: Callable[..., Any]) -> None:
        """Subscribe to an event.

        Args:
            event: Event name to subscribe to.
            handler: Callback invoked with the event payload.
        """
        self._emitter.on(event, handler)
        handler_name = getattr(handler, "__name__", str(handler))
        log_debug(f"Subscribed to {event}: {handler_name}")

    def subscribe_once(self, event: str, handler: Callable[..., Any]) -> None:
        """Subscribe to an event for a single invocation."""
        self._emitter.once(event, handler)
        handler_name = getattr(handler, "__name__", str(handler))
        log_debug(f"Subscribed once to {event}: {handler_name}")

    def unsubscribe(self, event: str, handler: Callable[..., Any]) -> None:
        """Unsubscribe a handler from an event."""
        self._emitter.remove_listener(event, handler)
        handler_name = getattr(handler, "__name__", str(handler))
        log_debug(f"Unsubscribed from {event}: {handler_name}")

    def publish(self, event: str, payload: dict[str, Any] | None = None) -> None:
        """Publish an event to all subscribers.

        Events are only delivered when the bridge is active; otherwise
        they are dropped. A listener raising is logged and does not
        propagate to the publisher.

        Args:
            event: Event name to publish.
            payload: Event payload.
        """
        if not self._active:
            log_trace(f"EventBridge not active, dropping event: {event}")
            return

        log_trace(f"Publishing event: {event}")
        try:
            self._emitter.emit(event, payload or {})
        except Exception as e:
            log_warn(
                f"EventBridge listener failed for {event}: {e}",
                {"event": event, "error_type": type(e).__name__},
            )

    def listener_count(self, event: str) -> int:
        """Get the number of listeners for an event."""
        return len(self._emitter.listeners(event))

    def listeners(self, event: str) -> list[Callable[..., Any]]:
        """Get all listeners for an event."""
        return list(self._emitter.listeners(event))

    @property
    def is_active(self) -> bool:
        """Check if the event bridge is active."""
        return self._active

    @property
    def event_schema(self) -> dict[str, str]:
        """Get the event schema documentation.

        Returns:
            Dict mapping event names to their payload keys.
        """
        return self._event_schema.copy()


__all__ = ["EventBridge", "EventNames"]
