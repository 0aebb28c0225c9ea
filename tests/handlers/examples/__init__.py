"""Example approval handlers for discovery tests.

- travel_handlers: TravelRequestHandler (declares approval_type directly)
- expense.handlers: ExpenseClaimHandler (type taken from its request model)
- base: DiscoverableHandlerBase (abstract, never registered)
"""

from .expense.handlers import ExpenseClaimHandler
from .travel_handlers import TravelRequestHandler, UntypedHandler

__all__ = ["ExpenseClaimHandler", "TravelRequestHandler", "UntypedHandler"]
