"""Tests for approval type resolution.

Tests the resolver chain and the built-in strategies: direct field,
instance id pattern, payload scan and external instance lookup.
"""

from __future__ import annotations

import json

import pytest

from approval_core import (
    CallbackEvent,
    DirectFieldStrategy,
    EventNames,
    InMemoryInstanceTypeLookup,
    InstanceLookupStrategy,
    InstancePatternStrategy,
    PayloadScanStrategy,
    ResolutionStrategy,
    TypeResolution,
    TypeResolver,
)
from tests.fakes import RecordingHandler

# =============================================================================
# Test Strategies and Lookups
# =============================================================================


class HeaderStrategy(ResolutionStrategy):
    """Custom strategy reading a header from the raw envelope."""

    def __init__(self, priority: int = 25) -> None:
        self._priority = priority

    @property
    def name(self) -> str:
        return "header"

    @property
    def priority(self) -> int:
        return self._priority

    def can_resolve(self, event: CallbackEvent) -> bool:
        return "x-approval-type" in event.raw

    def resolve(self, event, registry):
        return event.raw["x-approval-type"]


class ExplodingStrategy(HeaderStrategy):
    @property
    def name(self) -> str:
        return "exploding"

    def can_resolve(self, event: CallbackEvent) -> bool:
        return True

    def resolve(self, event, registry):
        raise RuntimeError("strategy bug")


class FailingLookup:
    def find_type_id(self, instance_id: str) -> str | None:
        raise ConnectionError("lookup store unavailable")


class AsyncLookup:
    def __init__(self, mapping: dict[str, str]) -> None:
        self.mapping = mapping

    async def find_type_id(self, instance_id: str) -> str | None:
        return self.mapping.get(instance_id)


@pytest.fixture
def resolver(registry, event_bridge) -> TypeResolver:
    registry.register("leave_approval", RecordingHandler)
    registry.register("expense_claim", RecordingHandler)
    return TypeResolver.default(registry, event_bridge=event_bridge)


# =============================================================================
# Chain Tests
# =============================================================================


class TestDefaultChain:
    """Tests for the default strategy chain."""

    def test_default_strategy_order(self, registry):
        resolver = TypeResolver.default(registry)

        assert resolver.strategy_names == ["direct_field", "instance_pattern", "payload_scan"]
        assert resolver.list_strategies() == [
            ("direct_field", 10),
            ("instance_pattern", 20),
            ("payload_scan", 30),
        ]

    def test_lookup_strategy_added_when_lookup_given(self, registry):
        resolver = TypeResolver.default(registry, lookup=InMemoryInstanceTypeLookup())

        assert resolver.strategy_names[-1] == "instance_lookup"
        assert len(resolver) == 4

    def test_chain_info(self, registry):
        info = TypeResolver.default(registry).chain_info()

        assert info[0] == {"name": "direct_field", "priority": 10, "class": "DirectFieldStrategy"}


class TestResolution:
    """Tests for TypeResolver.resolve()."""

    @pytest.mark.asyncio
    async def test_direct_field_beats_instance_pattern(self, resolver):
        """Test an explicit type field wins over a matching instance id."""
        event = CallbackEvent(type_id="leave_approval", instance_id="expense_claim_0001")

        resolution = await resolver.resolve(event)

        assert resolution == TypeResolution(type_id="leave_approval", strategy="direct_field")

    @pytest.mark.asyncio
    async def test_direct_field_accepted_verbatim(self, resolver):
        """Test the direct field is not checked against the registry."""
        event = CallbackEvent(type_id="not_registered", instance_id="I-1")

        resolution = await resolver.resolve(event)

        assert resolution.type_id == "not_registered"

    @pytest.mark.asyncio
    async def test_instance_pattern(self, resolver):
        event = CallbackEvent(instance_id="expense_claim_20240101_7")

        resolution = await resolver.resolve(event)

        assert resolution == TypeResolution(type_id="expense_claim", strategy="instance_pattern")

    @pytest.mark.asyncio
    async def test_instance_pattern_requires_registration(self, resolver):
        event = CallbackEvent(instance_id="travel_request_0001")

        assert await resolver.resolve(event) is None

    @pytest.mark.asyncio
    async def test_payload_scan_mapping(self, resolver):
        event = CallbackEvent(instance_id="I-1", payload={"approval_type": "leave_approval"})

        resolution = await resolver.resolve(event)

        assert resolution == TypeResolution(type_id="leave_approval", strategy="payload_scan")

    @pytest.mark.asyncio
    async def test_payload_scan_widget_list(self, resolver):
        payload = json.dumps([{"id": "type", "value": "expense_claim"}, {"id": "amount", "value": 5}])
        event = CallbackEvent(instance_id="I-1", payload=payload)

        resolution = await resolver.resolve(event)

        assert resolution.type_id == "expense_claim"

    @pytest.mark.asyncio
    async def test_unresolved_when_nothing_registered_matches(self, resolver, recorded_events):
        """Test no strategy yielding a registered id means unresolved."""
        event = CallbackEvent(
            event_id="evt-1",
            instance_id="unknown_kind_1",
            payload={"type": "travel_request"},
        )

        assert await resolver.resolve(event) is None
        assert (EventNames.TYPE_UNRESOLVED, {"instance_id": "unknown_kind_1", "event_id": "evt-1"}) in recorded_events

    @pytest.mark.asyncio
    async def test_resolved_event_published(self, resolver, recorded_events):
        await resolver.resolve(CallbackEvent(type_id="leave_approval", instance_id="I-1"))

        resolved = [p for name, p in recorded_events if name == EventNames.TYPE_RESOLVED]
        assert resolved[0]["strategy"] == "direct_field"
        assert resolved[0]["type_id"] == "leave_approval"

    @pytest.mark.asyncio
    async def test_lookup_strategy(self, registry):
        lookup = InMemoryInstanceTypeLookup({"I-9": "leave_approval"})
        resolver = TypeResolver.default(registry, lookup=lookup)

        resolution = await resolver.resolve(CallbackEvent(instance_id="I-9"))

        assert resolution == TypeResolution(type_id="leave_approval", strategy="instance_lookup")

    @pytest.mark.asyncio
    async def test_async_lookup(self, registry):
        resolver = TypeResolver.default(registry, lookup=AsyncLookup({"I-9": "expense_claim"}))

        resolution = await resolver.resolve(CallbackEvent(instance_id="I-9"))

        assert resolution.type_id == "expense_claim"

    @pytest.mark.asyncio
    async def test_lookup_errors_mean_no_result(self, registry):
        resolver = TypeResolver.default(registry, lookup=FailingLookup())

        assert await resolver.resolve(CallbackEvent(instance_id="I-9")) is None

    @pytest.mark.asyncio
    async def test_failing_custom_strategy_is_skipped(self, resolver):
        resolver.add_strategy(ExplodingStrategy(priority=5))

        resolution = await resolver.resolve(CallbackEvent(type_id="leave_approval"))

        assert resolution.strategy == "direct_field"


class TestCustomStrategies:
    """Tests for adding, replacing and removing strategies."""

    @pytest.mark.asyncio
    async def test_custom_strategy_in_priority_order(self, resolver):
        resolver.add_strategy(HeaderStrategy(priority=5))
        event = CallbackEvent(type_id="leave_approval", raw={"x-approval-type": "expense_claim"})

        resolution = await resolver.resolve(event)

        assert resolver.strategy_names[0] == "header"
        assert resolution == TypeResolution(type_id="expense_claim", strategy="header")

    def test_add_strategy_replaces_same_name(self, resolver):
        resolver.add_strategy(HeaderStrategy(priority=25))
        resolver.add_strategy(HeaderStrategy(priority=50))

        assert resolver.strategy_names.count("header") == 1
        assert resolver.get_strategy("header").priority == 50

    def test_remove_strategy(self, resolver):
        removed = resolver.remove_strategy("payload_scan")

        assert isinstance(removed, PayloadScanStrategy)
        assert "payload_scan" not in resolver.strategy_names
        assert resolver.remove_strategy("payload_scan") is None


class TestStrategies:
    """Unit tests for the individual strategies."""

    def test_direct_field_applicability(self, registry):
        strategy = DirectFieldStrategy()

        assert strategy.can_resolve(CallbackEvent(type_id="leave_approval"))
        assert not strategy.can_resolve(CallbackEvent(type_id="  "))
        assert not strategy.can_resolve(CallbackEvent())

    @pytest.mark.parametrize(
        ("instance_id", "expected"),
        [
            ("leave_approval_0001", "leave_approval"),
            ("leave_approval", "leave_approval"),
            ("leave", None),
            ("_approval_1", None),
        ],
    )
    def test_instance_pattern_candidate(self, instance_id, expected):
        assert InstancePatternStrategy().candidate(instance_id) == expected

    def test_instance_pattern_custom_separator(self, registry):
        registry.register("leave-approval", RecordingHandler)
        strategy = InstancePatternStrategy(separator="-")

        event = CallbackEvent(instance_id="leave-approval-42")

        assert strategy.resolve(event, registry) == "leave-approval"

    def test_instance_pattern_rejects_empty_separator(self):
        with pytest.raises(ValueError):
            InstancePatternStrategy(separator="")

    def test_payload_scan_invalid_json(self, registry):
        registry.register("leave_approval", RecordingHandler)
        strategy = PayloadScanStrategy()

        assert strategy.resolve(CallbackEvent(payload="{not json"), registry) is None

    def test_payload_scan_deeply_nested_payload(self, registry):
        registry.register("leave_approval", RecordingHandler)
        strategy = PayloadScanStrategy()

        assert strategy.resolve(CallbackEvent(payload="[" * 100_000 + "]" * 100_000), registry) is None

    def test_payload_scan_custom_keys(self, registry):
        registry.register("leave_approval", RecordingHandler)
        strategy = PayloadScanStrategy(keys=["kind"])

        assert strategy.resolve(CallbackEvent(payload={"kind": "leave_approval"}), registry) == "leave_approval"
        assert strategy.resolve(CallbackEvent(payload={"type": "leave_approval"}), registry) is None

    def test_payload_scan_widget_name_match(self):
        strategy = PayloadScanStrategy()
        widgets = [{"id": "widget1", "name": "approval_type", "value": "leave_approval"}]

        assert strategy.candidates(widgets) == ["leave_approval"]

    def test_lookup_strategy_needs_instance_id(self):
        strategy = InstanceLookupStrategy(InMemoryInstanceTypeLookup())

        assert not strategy.can_resolve(CallbackEvent())
