"""Approval handler contract, base class and functional handler."""

from __future__ import annotations

from .base import (
    CALLBACK_HOOKS,
    CREATE_HOOKS,
    HANDLER_HOOKS,
    ApprovalHandler,
    ApprovalHandlerBase,
    call_hook,
    is_handler,
)
from .functional import FunctionalApprovalHandler

__all__ = [
    "ApprovalHandler",
    "ApprovalHandlerBase",
    "FunctionalApprovalHandler",
    "CALLBACK_HOOKS",
    "CREATE_HOOKS",
    "HANDLER_HOOKS",
    "call_hook",
    "is_handler",
]
