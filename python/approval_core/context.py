"""Per-call data envelope for callback dispatch.

An ApprovalContext ties together the decoded request, the raw callback
event, a generated trace id and the time the callback was received. One
context is created per dispatch call and handed to exactly one status
branch; it is never shared between concurrent callbacks.

Example:
    >>> context = ApprovalContext.from_callback(event, LeaveRequest, "leave_approval")
    >>> context.instance_id
    'I-1'
    >>> context.data.days
    3
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .logging import log_warn
from .types import ApprovalRequest, CallbackEvent, CallbackStatus

RequestT = TypeVar("RequestT", bound=ApprovalRequest)


def new_trace_id() -> str:
    """Generate a trace id for one create or dispatch call."""
    return str(uuid4())


def widgets_to_mapping(widgets: list[Any]) -> dict[str, Any]:
    """Flatten a platform form widget list into ``{widget_id: value}``.

    Form payloads arrive as a list of ``{"id", "name", "type", "value"}``
    objects. Widgets without an id fall back to their name.
    """
    mapping: dict[str, Any] = {}
    for widget in widgets:
        if not isinstance(widget, dict):
            continue
        key = widget.get("id") or widget.get("name")
        if key:
            mapping[str(key)] = widget.get("value")
    return mapping


def decode_request(
    event: CallbackEvent,
    request_type: type[RequestT],
) -> tuple[RequestT, str | None]:
    """Decode the callback payload into the handler's request model.

    Decode failures never abort dispatch: a default instance of the
    request model is returned together with the failure message.

    Args:
        event: The callback event holding the raw payload.
        request_type: The request model to decode into.

    Returns:
        Tuple of (request instance, decode error message or None).
    """
    if event.payload is None or event.payload == "":
        return request_type.default_instance(), None  # type: ignore[return-value]

    try:
        data = event.payload_data()
        if isinstance(data, list):
            data = widgets_to_mapping(data)
        return request_type.model_validate(data), None
    except (ValueError, TypeError, RecursionError, PydanticValidationError) as e:
        log_warn(
            f"Failed to decode callback payload into {request_type.__name__}, using defaults",
            {
                "instance_id": event.instance_id,
                "event_id": event.event_id or "",
                "error": str(e),
            },
        )
        return request_type.default_instance(), str(e)  # type: ignore[return-value]


class ApprovalContext(BaseModel, Generic[RequestT]):
    """Context provided to handler status branches.

    Attributes:
        data: The decoded request (defaults only if decoding failed).
        callback: The raw callback event.
        type_id: The approval type the callback was routed to.
        trace_id: Trace ID correlating log records and events of this call.
        received_at: UTC time the dispatcher received the callback.
        decode_error: Decode failure message, None when decoding succeeded.
    """

    data: RequestT = Field(description="Decoded approval request.")
    callback: CallbackEvent = Field(description="The raw callback event.")
    type_id: str = Field(description="Approval type the callback was routed to.")
    trace_id: str = Field(default_factory=new_trace_id, description="Trace ID.")
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the callback was received.",
    )
    decode_error: str | None = Field(
        default=None,
        description="Why the payload could not be decoded, if it could not.",
    )

    model_config = {"arbitrary_types_allowed": True}

    @classmethod
    def from_callback(
        cls,
        event: CallbackEvent,
        request_type: type[RequestT],
        type_id: str,
        trace_id: str | None = None,
    ) -> ApprovalContext[RequestT]:
        """Create a context by decoding the event payload once.

        Args:
            event: The callback event.
            request_type: Request model of the resolved handler.
            type_id: Resolved approval type.
            trace_id: Trace ID to reuse; a new one is generated if omitted.

        Returns:
            A populated ApprovalContext.
        """
        data, decode_error = decode_request(event, request_type)
        return cls(
            data=data,
            callback=event,
            type_id=type_id,
            trace_id=trace_id or new_trace_id(),
            decode_error=decode_error,
        )

    @property
    def instance_id(self) -> str:
        """Instance the callback refers to."""
        return self.callback.instance_id

    @property
    def status(self) -> CallbackStatus:
        """Parsed status of the callback."""
        return self.callback.callback_status

    @property
    def decoded(self) -> bool:
        """Check whether the payload was decoded without error."""
        return self.decode_error is None


__all__ = [
    "ApprovalContext",
    "decode_request",
    "new_trace_id",
    "widgets_to_mapping",
]
