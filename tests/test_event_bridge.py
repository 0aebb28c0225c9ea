"""Tests for the in-process event bridge."""

from __future__ import annotations

from approval_core import EventBridge, EventNames


class TestEventBridge:
    """Tests for EventBridge publish and subscribe."""

    def test_publish_reaches_subscriber(self, event_bridge):
        received = []
        event_bridge.subscribe(EventNames.TYPE_RESOLVED, received.append)

        event_bridge.publish(EventNames.TYPE_RESOLVED, {"type_id": "leave_approval"})

        assert received == [{"type_id": "leave_approval"}]

    def test_inactive_bridge_drops_events(self):
        bridge = EventBridge()
        received = []
        bridge.subscribe(EventNames.TYPE_RESOLVED, received.append)

        bridge.publish(EventNames.TYPE_RESOLVED, {"type_id": "leave_approval"})

        assert received == []
        assert not bridge.is_active

    def test_missing_payload_is_empty_dict(self, event_bridge):
        received = []
        event_bridge.subscribe(EventNames.CALLBACK_DUPLICATE, received.append)

        event_bridge.publish(EventNames.CALLBACK_DUPLICATE)

        assert received == [{}]

    def test_listener_error_does_not_propagate(self, event_bridge):
        def broken(payload):
            raise RuntimeError("listener bug")

        event_bridge.subscribe(EventNames.LIFECYCLE_FAILED, broken)

        event_bridge.publish(EventNames.LIFECYCLE_FAILED, {"stage": "start"})

    def test_subscribe_once(self, event_bridge):
        received = []
        event_bridge.subscribe_once(EventNames.HANDLER_REGISTERED, received.append)

        event_bridge.publish(EventNames.HANDLER_REGISTERED, {"type_id": "a"})
        event_bridge.publish(EventNames.HANDLER_REGISTERED, {"type_id": "b"})

        assert received == [{"type_id": "a"}]

    def test_unsubscribe(self, event_bridge):
        received = []

        def listener(payload):
            received.append(payload)

        event_bridge.subscribe(EventNames.TYPE_UNRESOLVED, listener)
        assert event_bridge.listener_count(EventNames.TYPE_UNRESOLVED) == 1

        event_bridge.unsubscribe(EventNames.TYPE_UNRESOLVED, listener)
        event_bridge.publish(EventNames.TYPE_UNRESOLVED, {"instance_id": "I-1"})

        assert received == []
        assert event_bridge.listeners(EventNames.TYPE_UNRESOLVED) == []

    def test_stop_removes_listeners(self):
        bridge = EventBridge()
        bridge.start()
        bridge.subscribe(EventNames.TYPE_RESOLVED, print)

        bridge.stop()
        bridge.stop()

        assert bridge.listener_count(EventNames.TYPE_RESOLVED) == 0

    def test_event_schema_covers_every_event(self):
        schema = EventBridge().event_schema
        names = {value for key, value in vars(EventNames).items() if key.isupper()}

        assert set(schema) == names
