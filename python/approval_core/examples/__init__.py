"""Example handlers for approval-core.

Available examples:
    - leave_approval: typed leave request with balance tracking
"""

from approval_core.examples.leave_approval import (
    LeaveApprovalHandler,
    LeaveBalanceBook,
    LeaveRequest,
)

__all__ = ["LeaveApprovalHandler", "LeaveBalanceBook", "LeaveRequest"]
