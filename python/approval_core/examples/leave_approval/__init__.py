"""Leave approval example handler."""

from approval_core.examples.leave_approval.handlers import (
    LeaveApprovalHandler,
    LeaveBalanceBook,
    LeaveRequest,
)

__all__ = ["LeaveApprovalHandler", "LeaveBalanceBook", "LeaveRequest"]
