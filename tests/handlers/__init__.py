"""Handler packages used by discovery tests."""
