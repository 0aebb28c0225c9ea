"""Handlers composed from plain callables.

Useful for small approval types and tests, where writing a class for
each type is more ceremony than the logic it holds.

Example:
    >>> handler = FunctionalApprovalHandler(
    ...     on_approved=lambda ctx: grant(ctx.data),
    ...     on_rejected=lambda ctx: notify(ctx.data),
    ... )
    >>> registry.register("leave_approval", handler, request_type=LeaveRequest)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..logging import log_warn


def _noop(*_args: Any) -> None:
    return None


def _log_business_exception(context: Any, error: BaseException) -> None:
    log_warn(
        f"Unhandled business error in approval callback: {error}",
        {
            "type_id": context.type_id,
            "instance_id": context.instance_id,
            "trace_id": context.trace_id,
        },
    )


@dataclass
class FunctionalApprovalHandler:
    """Approval handler whose hooks are supplied as callables.

    Every hook defaults to a no-op, except ``on_business_exception``
    which logs a warning.
    """

    validate: Callable[..., Any] = _noop
    pre_process: Callable[..., Any] = _noop
    post_process: Callable[..., Any] = _noop
    on_create_failure: Callable[..., Any] = _noop
    on_approved: Callable[..., Any] = _noop
    on_rejected: Callable[..., Any] = _noop
    on_cancelled: Callable[..., Any] = _noop
    on_unknown_status: Callable[..., Any] = _noop
    on_business_exception: Callable[..., Any] = _log_business_exception


__all__ = ["FunctionalApprovalHandler"]
