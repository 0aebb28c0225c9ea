"""External collaborator interfaces.

The core performs no HTTP I/O and persists nothing. Hosts supply these
collaborators; methods may be coroutine functions or plain functions.

In-memory implementations of the lookup and ledger ship for
single-process deployments and tests.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from .types import CreateResult, InstanceDetail


@runtime_checkable
class RemoteApprovalClient(Protocol):
    """Client for the remote approval platform's API."""

    def create_instance(self, request: Any) -> CreateResult:
        """Create a remote approval instance for a request."""
        ...

    def get_instance(self, instance_id: str) -> InstanceDetail:
        """Fetch the detail of a remote approval instance."""
        ...


@runtime_checkable
class InstanceTypeLookup(Protocol):
    """Store mapping instance ids to the approval type that created them."""

    def find_type_id(self, instance_id: str) -> str | None: ...


@runtime_checkable
class CallbackLedger(Protocol):
    """Record of processed callback events, used to skip duplicates.

    ``claim`` must be atomic: of two concurrent claims for one event id,
    exactly one returns True.
    """

    def seen(self, event_id: str) -> bool: ...

    def claim(self, event_id: str) -> bool: ...

    def record(self, event_id: str, status: str, message: str | None = None) -> None: ...


class InMemoryInstanceTypeLookup:
    """Instance lookup backed by a dict.

    Example:
        >>> lookup = InMemoryInstanceTypeLookup()
        >>> lookup.remember("I-1", "leave_approval")
        >>> lookup.find_type_id("I-1")
        'leave_approval'
    """

    def __init__(self, mapping: dict[str, str] | None = None) -> None:
        self._mapping: dict[str, str] = dict(mapping or {})
        self._lock = threading.Lock()

    def remember(self, instance_id: str, type_id: str) -> None:
        with self._lock:
            self._mapping[instance_id] = type_id

    def find_type_id(self, instance_id: str) -> str | None:
        return self._mapping.get(instance_id)


class InMemoryCallbackLedger:
    """Callback ledger backed by a dict, for a single process."""

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def seen(self, event_id: str) -> bool:
        return event_id in self._records

    def claim(self, event_id: str) -> bool:
        """Mark an event id as processing. False if it was already known."""
        with self._lock:
            if event_id in self._records:
                return False
            self._records[event_id] = {
                "status": "processing",
                "message": None,
                "recorded_at": datetime.now(timezone.utc),
            }
            return True

    def record(self, event_id: str, status: str, message: str | None = None) -> None:
        with self._lock:
            self._records[event_id] = {
                "status": status,
                "message": message,
                "recorded_at": datetime.now(timezone.utc),
            }

    def get(self, event_id: str) -> dict[str, Any] | None:
        """Return the stored record for an event id, if any."""
        return self._records.get(event_id)

    def __len__(self) -> int:
        return len(self._records)


__all__ = [
    "CallbackLedger",
    "InMemoryCallbackLedger",
    "InMemoryInstanceTypeLookup",
    "InstanceTypeLookup",
    "RemoteApprovalClient",
]
