"""Pydantic models for approval-core.

This module provides type-safe data models shared by the registry,
resolver, orchestrator and dispatcher, using Pydantic v2 for validation
and serialization.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


class CallbackStatus(str, Enum):
    """Status tag carried by a callback event.

    Parsing is case-insensitive; every value outside the three known
    tags maps to UNKNOWN.
    """

    APPROVED = "approved"
    """The approval instance was approved."""

    REJECTED = "rejected"
    """The approval instance was rejected."""

    CANCELLED = "cancelled"
    """The applicant withdrew the approval instance."""

    UNKNOWN = "unknown"
    """Any other tag, including empty or missing."""

    @classmethod
    def parse(cls, raw: str | None) -> CallbackStatus:
        """Parse a raw status tag.

        Example:
            >>> CallbackStatus.parse("APPROVED")
            <CallbackStatus.APPROVED: 'approved'>
            >>> CallbackStatus.parse("weird-status")
            <CallbackStatus.UNKNOWN: 'unknown'>
        """
        normalized = (raw or "").strip().lower()
        for status in (cls.APPROVED, cls.REJECTED, cls.CANCELLED):
            if normalized == status.value:
                return status
        return cls.UNKNOWN


class LifecycleStage(str, Enum):
    """States of the create lifecycle."""

    START = "start"
    VALIDATED = "validated"
    PRE_PROCESSED = "pre_processed"
    CREATED = "created"
    POST_PROCESSED = "post_processed"
    FAILED = "failed"


class LogContext(BaseModel):
    """Context fields for structured logging.

    Example:
        >>> context = LogContext(
        ...     trace_id="abc-123",
        ...     type_id="leave_approval",
        ...     operation="create"
        ... )
        >>> log_info("Approval created", context)
    """

    trace_id: str | None = Field(
        default=None,
        description="Trace ID correlating every step of one operation.",
    )
    type_id: str | None = Field(
        default=None,
        description="Approval type identifier.",
    )
    instance_id: str | None = Field(
        default=None,
        description="Remote approval instance identifier.",
    )
    event_id: str | None = Field(
        default=None,
        description="Callback event identifier.",
    )
    operation: str | None = Field(
        default=None,
        description="Operation being performed (create, callback).",
    )
    stage: str | None = Field(
        default=None,
        description="Lifecycle stage or dispatch branch.",
    )


class ApprovalRequest(BaseModel):
    """Base model for typed approval payloads.

    Every request type names its approval type through the
    ``approval_type`` class attribute. ``approval_type_id()`` is the
    capability the registry uses to find the handler for a request type,
    so no instance is needed to resolve it.

    Field aliases map platform form widget ids to readable attribute names.

    Example:
        >>> class LeaveRequest(ApprovalRequest):
        ...     approval_type = "leave_approval"
        ...     employee_id: str = ""
        ...     days: int = 0
        >>>
        >>> LeaveRequest.approval_type_id()
        'leave_approval'
    """

    approval_type: ClassVar[str] = ""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @classmethod
    def approval_type_id(cls) -> str:
        """Return the approval type id associated with this request type.

        Returns:
            The ``approval_type`` class attribute, or an empty string if
            the subclass did not declare one.
        """
        return cls.approval_type

    @classmethod
    def default_instance(cls) -> ApprovalRequest:
        """Build an instance holding only field defaults.

        Used when a callback payload cannot be decoded. Validation is
        skipped, so required fields without defaults are left unset.
        """
        return cls.model_construct()


class CallbackEvent(BaseModel):
    """Inbound status-change notification from the approval platform.

    Only ``instance_id`` and ``status`` are expected in the general case;
    ``type_id`` may be absent or untrusted.

    Example:
        >>> event = CallbackEvent(
        ...     type_id="leave_approval",
        ...     instance_id="I-1",
        ...     status="rejected",
        ... )
        >>> event.callback_status
        <CallbackStatus.REJECTED: 'rejected'>
    """

    event_id: str | None = Field(
        default=None,
        description="Unique event identifier assigned by the platform.",
    )
    type_id: str | None = Field(
        default=None,
        description="Approval type (definition code) carried by the event, if any.",
    )
    instance_id: str = Field(
        default="",
        description="Remote approval instance identifier.",
    )
    status: str | None = Field(
        default=None,
        description="Raw status tag (approved, rejected, cancelled, ...).",
    )
    payload: str | dict[str, Any] | list[Any] | None = Field(
        default=None,
        description="Raw form data: a JSON string or already-parsed structure.",
    )
    token: str | None = Field(default=None, description="Verification token.")
    timestamp: str | None = Field(default=None, description="Platform event timestamp.")
    raw: dict[str, Any] = Field(
        default_factory=dict,
        description="The original envelope the event was parsed from.",
    )

    @property
    def callback_status(self) -> CallbackStatus:
        """Return the parsed status tag."""
        return CallbackStatus.parse(self.status)

    def payload_data(self) -> Any:
        """Return the payload as parsed data.

        Returns:
            Parsed JSON for string payloads, the payload itself for
            dicts and lists, or None when empty.

        Raises:
            ValueError: If a string payload is not valid JSON.
            RecursionError: If a string payload nests deeper than the
                JSON decoder allows.
        """
        if self.payload is None or self.payload == "":
            return None
        if isinstance(self.payload, str):
            return json.loads(self.payload)
        return self.payload

    @classmethod
    def from_feishu(cls, data: dict[str, Any] | None) -> CallbackEvent:
        """Create a CallbackEvent from a decrypted platform envelope.

        The envelope nests instance details under ``event``:
        ``event.definition_code`` (or ``approval_code``) is the approval
        type and ``event.instance_code`` the instance id. The status tag is
        taken from ``event.status``, then the ``event.event`` action, then
        the root ``status``, then the root ``type``.

        Args:
            data: Decrypted callback JSON.

        Returns:
            CallbackEvent instance.

        Example:
            >>> event = CallbackEvent.from_feishu({
            ...     "uuid": "evt-1",
            ...     "event": {
            ...         "definition_code": "leave_approval",
            ...         "instance_code": "I-1",
            ...         "status": "APPROVED",
            ...     },
            ... })
            >>> event.instance_id
            'I-1'
        """
        if data is None:
            data = {}
        inner = data.get("event") or {}
        return cls(
            event_id=data.get("uuid") or data.get("event_id"),
            type_id=inner.get("definition_code") or inner.get("approval_code"),
            instance_id=inner.get("instance_code") or "",
            status=inner.get("status") or inner.get("event") or data.get("status") or data.get("type"),
            payload=data.get("form") if data.get("form") is not None else inner.get("form"),
            token=data.get("token"),
            timestamp=data.get("ts"),
            raw=data,
        )


class CreateResult(BaseModel):
    """Result of the remote create call.

    Example:
        >>> result = CreateResult(instance_id="I-1")
        >>> result.success
        True
    """

    instance_id: str = Field(
        default="",
        validation_alias="instance_code",
        description="Remote-assigned instance identifier.",
    )
    success: bool = Field(default=True, description="Whether the remote create succeeded.")
    message: str | None = Field(
        default=None,
        description="Platform message, usually set on failure.",
    )

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def failed(cls, message: str) -> CreateResult:
        """Create a non-success result."""
        return cls(success=False, message=message)


class InstanceDetail(BaseModel):
    """Instance detail returned by the remote approval client."""

    instance_id: str = Field(validation_alias="instance_code")
    approval_code: str | None = None
    status: str | None = None
    form: str | None = None
    start_time: int | None = None
    end_time: int | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True)


class CreateOutcome(BaseModel):
    """What a successful create returns to the caller.

    Post-process failures do not fail the call; they are reported in
    ``warnings`` because the remote instance already exists.
    """

    result: CreateResult = Field(description="The remote create result.")
    type_id: str = Field(description="Approval type of the request.")
    trace_id: str = Field(description="Trace ID of the create call.")
    warnings: list[str] = Field(
        default_factory=list,
        description="Advisory messages from steps after remote creation.",
    )

    @property
    def instance_id(self) -> str:
        """Shortcut for ``result.instance_id``."""
        return self.result.instance_id

    @property
    def has_warnings(self) -> bool:
        """Check whether any post-create step reported a problem."""
        return bool(self.warnings)


class DispatchOutcome(BaseModel):
    """Result of routing a callback to its handler.

    Produced only when routing succeeded. ``handled`` reports whether
    the status branch itself completed without raising.
    """

    type_id: str = Field(description="Resolved approval type.")
    strategy: str = Field(description="Name of the strategy that resolved the type.")
    status: CallbackStatus = Field(description="Branch that was taken.")
    instance_id: str = Field(default="", description="Instance the callback refers to.")
    trace_id: str = Field(description="Trace ID of the dispatch call.")
    handled: bool = Field(default=True, description="Whether the status branch succeeded.")
    error: str | None = Field(
        default=None,
        description="Message of the business error raised by the branch, if any.",
    )
    duplicate: bool = Field(
        default=False,
        description="True when the event id was already processed and dispatch was skipped.",
    )
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the callback entered the dispatcher.",
    )


__all__ = [
    "CallbackStatus",
    "LifecycleStage",
    "LogContext",
    "ApprovalRequest",
    "CallbackEvent",
    "CreateResult",
    "InstanceDetail",
    "CreateOutcome",
    "DispatchOutcome",
]
