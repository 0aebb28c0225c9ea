"""Leave approval example.

Demonstrates a typed request bound to platform form widgets and a
handler covering the full create lifecycle and every callback branch.
Approved leave is deducted from an in-memory balance book.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import Field

from approval_core.handler import ApprovalHandlerBase
from approval_core.logging import log_info, log_warn
from approval_core.types import ApprovalRequest

if TYPE_CHECKING:
    from approval_core.context import ApprovalContext
    from approval_core.errors import LifecycleError
    from approval_core.types import CreateResult


class LeaveRequest(ApprovalRequest):
    """Leave request form.

    Field aliases are the widget ids of the platform form definition.
    """

    approval_type: ClassVar[str] = "leave_approval"

    employee_id: str = Field(default="", alias="widget_employee_id")
    days: int = Field(default=0, alias="widget_leave_days")
    reason: str = Field(default="", alias="widget_leave_reason")


class LeaveBalanceBook:
    """In-memory leave balances keyed by employee id."""

    def __init__(self, default_balance: int = 10) -> None:
        self.default_balance = default_balance
        self.balances: dict[str, int] = {}
        self.pending: dict[str, str] = {}

    def balance(self, employee_id: str) -> int:
        return self.balances.get(employee_id, self.default_balance)

    def deduct(self, employee_id: str, days: int) -> None:
        remaining = self.balance(employee_id) - days
        if remaining < 0:
            raise ValueError(f"insufficient leave balance for {employee_id}")
        self.balances[employee_id] = remaining


class LeaveApprovalHandler(ApprovalHandlerBase):
    """Handler for ``leave_approval``.

    Validates the requested days against the employee's balance, tracks
    pending instances and deducts the balance once approved.
    """

    request_type: ClassVar[type[ApprovalRequest]] = LeaveRequest

    def __init__(self, book: LeaveBalanceBook | None = None) -> None:
        self.book = book or LeaveBalanceBook()
        self.failures: list[LifecycleError] = []
        self.business_errors: list[BaseException] = []

    async def validate(self, request: LeaveRequest) -> None:
        if not request.employee_id:
            raise ValueError("employee_id is required")
        if request.days <= 0:
            raise ValueError("days must be positive")
        if request.days > self.book.balance(request.employee_id):
            raise ValueError("requested days exceed the leave balance")

    async def pre_process(self, request: LeaveRequest) -> None:
        request.reason = request.reason.strip() or "personal"

    async def post_process(self, request: LeaveRequest, result: CreateResult) -> None:
        self.book.pending[result.instance_id] = request.employee_id

    async def on_create_failure(self, request: LeaveRequest, error: LifecycleError) -> None:
        self.failures.append(error)

    async def on_approved(self, context: ApprovalContext[Any]) -> None:
        request = context.data
        self.book.deduct(request.employee_id, request.days)
        self.book.pending.pop(context.instance_id, None)
        log_info(
            "Leave approved",
            {"instance_id": context.instance_id, "employee_id": request.employee_id},
        )

    async def on_rejected(self, context: ApprovalContext[Any]) -> None:
        self.book.pending.pop(context.instance_id, None)

    async def on_cancelled(self, context: ApprovalContext[Any]) -> None:
        self.book.pending.pop(context.instance_id, None)

    async def on_unknown_status(self, context: ApprovalContext[Any]) -> None:
        log_warn(
            f"Ignoring leave callback with status {context.callback.status!r}",
            {"instance_id": context.instance_id},
        )

    async def on_business_exception(
        self,
        context: ApprovalContext[Any],
        error: BaseException,
    ) -> None:
        self.business_errors.append(error)


__all__ = ["LeaveApprovalHandler", "LeaveBalanceBook", "LeaveRequest"]
