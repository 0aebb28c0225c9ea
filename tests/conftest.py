"""pytest configuration and fixtures for approval_core tests.

This module provides shared fixtures for testing approval-core, including
an EventBridge, a TypeRegistry, a fake remote client, and sample
callback events.
"""

from __future__ import annotations

import json
from collections.abc import Generator
from typing import TYPE_CHECKING, Any

import pytest

from tests.fakes import FakeRemoteClient, RecordingHandler

if TYPE_CHECKING:
    from approval_core import ApprovalService, EventBridge, TypeRegistry


@pytest.fixture(scope="session")
def approval_core_module():
    """Provide the approval_core module as a fixture."""
    import approval_core

    return approval_core


@pytest.fixture(autouse=True)
def restore_logger_level() -> Generator[None, None, None]:
    """Restore the approval_core logger level after each test."""
    import logging

    logger = logging.getLogger("approval_core")
    level = logger.level
    yield
    logger.setLevel(level)


@pytest.fixture
def event_bridge() -> Generator[EventBridge, None, None]:
    """Provide a started EventBridge, stopped after the test."""
    from approval_core import EventBridge

    bridge = EventBridge()
    bridge.start()
    yield bridge
    bridge.stop()


@pytest.fixture
def recorded_events(event_bridge: EventBridge) -> list[tuple[str, dict[str, Any]]]:
    """Collect every event published on the bridge as (name, payload)."""
    from approval_core import EventNames

    events: list[tuple[str, dict[str, Any]]] = []
    for name, value in vars(EventNames).items():
        if name.isupper():
            event_bridge.subscribe(value, lambda payload, _n=value: events.append((_n, payload)))
    return events


@pytest.fixture
def registry(event_bridge: EventBridge) -> TypeRegistry:
    """Provide an empty TypeRegistry publishing to the event bridge."""
    from approval_core import TypeRegistry

    return TypeRegistry(event_bridge=event_bridge)


@pytest.fixture
def recording_handler() -> RecordingHandler:
    """Provide a RecordingHandler that never fails."""
    return RecordingHandler()


@pytest.fixture
def remote_client() -> FakeRemoteClient:
    """Provide a remote client creating instance ``I-1``."""
    return FakeRemoteClient()


@pytest.fixture
def service(
    registry: TypeRegistry,
    recording_handler: RecordingHandler,
    remote_client: FakeRemoteClient,
    event_bridge: EventBridge,
) -> ApprovalService:
    """Provide a service with ``leave_approval`` bound to the recording handler."""
    from approval_core import build_service

    registry.register("leave_approval", recording_handler)
    return build_service(
        remote_client=remote_client,
        registry=registry,
        event_bridge=event_bridge,
    )


@pytest.fixture
def feishu_envelope() -> dict[str, Any]:
    """Provide a decrypted platform callback envelope for instance I-1."""
    return {
        "uuid": "evt-0001",
        "token": "verification-token",
        "ts": "1700000000",
        "type": "event_callback",
        "event": {
            "app_id": "cli_app",
            "definition_code": "leave_approval",
            "definition_name": "Leave",
            "instance_code": "I-1",
            "status": "APPROVED",
            "type": "approval_instance",
        },
        "form": json.dumps(
            [
                {"id": "employee_id", "name": "Employee", "type": "input", "value": "E1"},
                {"id": "days", "name": "Days", "type": "number", "value": 3},
            ]
        ),
    }
