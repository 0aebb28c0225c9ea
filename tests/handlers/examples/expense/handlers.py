"""Expense claim handler for discovery tests."""

from __future__ import annotations

from typing import Any, ClassVar

from approval_core import ApprovalRequest

from ..base import DiscoverableHandlerBase


class ExpenseClaim(ApprovalRequest):
    approval_type: ClassVar[str] = "expense_claim"

    amount: float = 0.0


class ExpenseClaimHandler(DiscoverableHandlerBase):
    """Approval type comes from the request model."""

    approval_type = ""
    request_type: ClassVar[type[ApprovalRequest]] = ExpenseClaim

    def describe(self) -> str:
        return "expense"

    async def on_approved(self, context: Any) -> None:
        return None
