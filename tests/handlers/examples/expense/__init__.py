"""Expense claim handlers."""
