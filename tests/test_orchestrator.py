"""Tests for the create lifecycle.

These tests verify:
- Steps run strictly in order, once each
- Every pre-create failure is typed, runs the failure hook and chains the cause
- Post-process failures become warnings on a successful outcome
- Cancellation runs the failure hook and still propagates
- Lifecycle events share one trace id
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from approval_core import (
    ApprovalOrchestrator,
    CreateCancelledError,
    CreateOutcome,
    CreateResult,
    CreationFailure,
    EventNames,
    FunctionalApprovalHandler,
    InvalidHandlerError,
    LifecycleStage,
    PreProcessError,
    UnregisteredHandlerError,
    ValidationError,
)
from tests.fakes import (
    BlockingRemoteClient,
    FakeRemoteClient,
    LeaveForm,
    RecordingHandler,
    UnregisteredForm,
)


def make_orchestrator(registry, handler, remote_client=None, event_bridge=None):
    registry.register("leave_approval", handler)
    return ApprovalOrchestrator(
        registry,
        remote_client or FakeRemoteClient(),
        event_bridge=event_bridge,
    )


class TestSuccessfulCreate:
    """Tests for the happy path."""

    @pytest.mark.asyncio
    async def test_steps_run_in_order_once_each(self, registry, recording_handler, remote_client):
        """Test validate, pre_process and post_process run once, in order."""
        orchestrator = make_orchestrator(registry, recording_handler, remote_client)
        request = LeaveForm(employee_id="E1", days=3)

        outcome = await orchestrator.create(request)

        assert isinstance(outcome, CreateOutcome)
        assert outcome.instance_id == "I-1"
        assert outcome.type_id == "leave_approval"
        assert outcome.warnings == []
        assert recording_handler.calls == ["validate", "pre_process", "post_process"]
        assert remote_client.created == [request]

    @pytest.mark.asyncio
    async def test_pre_process_mutation_reaches_remote(self, registry, remote_client):
        """Test in-place normalization by pre_process is what gets created."""

        def normalize(request):
            request.days = 5

        handler = FunctionalApprovalHandler(pre_process=normalize)
        orchestrator = make_orchestrator(registry, handler, remote_client)

        await orchestrator.create(LeaveForm(employee_id="E1", days=3))

        assert remote_client.created[0].days == 5

    @pytest.mark.asyncio
    async def test_sync_and_async_hooks_mix(self, registry):
        calls = []

        async def validate(request):
            calls.append("validate")

        handler = FunctionalApprovalHandler(
            validate=validate,
            pre_process=lambda request: calls.append("pre_process"),
            post_process=lambda request, result: calls.append(("post_process", result.instance_id)),
        )
        orchestrator = make_orchestrator(registry, handler)

        await orchestrator.create(LeaveForm())

        assert calls == ["validate", "pre_process", ("post_process", "I-1")]

    @pytest.mark.asyncio
    async def test_transitions_share_trace_id(self, registry, recording_handler, event_bridge, recorded_events):
        orchestrator = make_orchestrator(registry, recording_handler, event_bridge=event_bridge)

        outcome = await orchestrator.create(LeaveForm())

        transitions = [p for name, p in recorded_events if name == EventNames.LIFECYCLE_TRANSITION]
        assert [p["stage"] for p in transitions] == [
            LifecycleStage.START.value,
            LifecycleStage.VALIDATED.value,
            LifecycleStage.PRE_PROCESSED.value,
            LifecycleStage.CREATED.value,
            LifecycleStage.POST_PROCESSED.value,
        ]
        assert {p["trace_id"] for p in transitions} == {outcome.trace_id}

    @pytest.mark.asyncio
    async def test_remote_result_mapping_is_accepted(self, registry, recording_handler):
        """Test a client returning the platform's raw mapping is understood."""

        class MappingClient(FakeRemoteClient):
            async def create_instance(self, request):
                return {"instance_code": "I-42"}

        orchestrator = make_orchestrator(registry, recording_handler, MappingClient())

        outcome = await orchestrator.create(LeaveForm())

        assert outcome.instance_id == "I-42"


class TestPreCreateFailures:
    """Tests for failures before the remote instance exists."""

    @pytest.mark.asyncio
    async def test_validate_failure(self, registry, remote_client):
        """Test a validate error stops the lifecycle before pre_process."""
        cause = ValueError("days must be positive")
        handler = RecordingHandler(failures={"validate": cause})
        orchestrator = make_orchestrator(registry, handler, remote_client)

        with pytest.raises(ValidationError) as exc_info:
            await orchestrator.create(LeaveForm())

        error = exc_info.value
        assert error.__cause__ is cause
        assert error.stage is LifecycleStage.START
        assert error.type_id == "leave_approval"
        assert error.retryable is False
        assert handler.calls == ["validate", "on_create_failure"]
        assert handler.errors == [error]
        assert remote_client.created == []

    @pytest.mark.asyncio
    async def test_pre_process_failure(self, registry, remote_client):
        cause = KeyError("manager")
        handler = RecordingHandler(failures={"pre_process": cause})
        orchestrator = make_orchestrator(registry, handler, remote_client)

        with pytest.raises(PreProcessError) as exc_info:
            await orchestrator.create(LeaveForm())

        assert exc_info.value.__cause__ is cause
        assert exc_info.value.stage is LifecycleStage.VALIDATED
        assert handler.calls == ["validate", "pre_process", "on_create_failure"]
        assert remote_client.created == []

    @pytest.mark.asyncio
    async def test_remote_error_is_creation_failure(self, registry, recording_handler):
        cause = ConnectionError("reset by peer")
        remote_client = FakeRemoteClient(error=cause)
        orchestrator = make_orchestrator(registry, recording_handler, remote_client)

        with pytest.raises(CreationFailure) as exc_info:
            await orchestrator.create(LeaveForm())

        error = exc_info.value
        assert error.__cause__ is cause
        assert error.stage is LifecycleStage.PRE_PROCESSED
        assert error.retryable is True
        assert error.metadata["error_type"] == "ConnectionError"
        assert recording_handler.calls == ["validate", "pre_process", "on_create_failure"]

    @pytest.mark.asyncio
    async def test_remote_permanent_error_not_retryable(self, registry, recording_handler):
        orchestrator = make_orchestrator(
            registry,
            recording_handler,
            FakeRemoteClient(error=ValueError("unknown approval code")),
        )

        with pytest.raises(CreationFailure) as exc_info:
            await orchestrator.create(LeaveForm())

        assert exc_info.value.retryable is False

    @pytest.mark.asyncio
    async def test_non_success_result_is_creation_failure(self, registry, recording_handler):
        remote_client = FakeRemoteClient(result=CreateResult.failed("form invalid"))
        orchestrator = make_orchestrator(registry, recording_handler, remote_client)

        with pytest.raises(CreationFailure) as exc_info:
            await orchestrator.create(LeaveForm())

        assert "form invalid" in exc_info.value.message
        assert exc_info.value.retryable is False
        assert "post_process" not in recording_handler.calls
        assert recording_handler.calls[-1] == "on_create_failure"

    @pytest.mark.asyncio
    async def test_failure_hook_error_does_not_override(self, registry):
        """Test an error raised by on_create_failure is logged, not raised."""
        handler = RecordingHandler(
            failures={
                "validate": ValueError("bad"),
                "on_create_failure": RuntimeError("compensation failed"),
            }
        )
        orchestrator = make_orchestrator(registry, handler)

        with pytest.raises(ValidationError):
            await orchestrator.create(LeaveForm())

        assert handler.calls == ["validate", "on_create_failure"]

    @pytest.mark.asyncio
    async def test_failed_event_published(self, registry, event_bridge, recorded_events):
        handler = RecordingHandler(failures={"validate": ValueError("bad")})
        orchestrator = make_orchestrator(registry, handler, event_bridge=event_bridge)

        with pytest.raises(ValidationError):
            await orchestrator.create(LeaveForm())

        failed = [p for name, p in recorded_events if name == EventNames.LIFECYCLE_FAILED]
        assert len(failed) == 1
        assert failed[0]["stage"] == "start"
        assert failed[0]["error"]["error_type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_unregistered_request_type(self, registry, recording_handler, remote_client):
        """Test an unregistered request type fails before any step."""
        orchestrator = make_orchestrator(registry, recording_handler, remote_client)

        with pytest.raises(UnregisteredHandlerError) as exc_info:
            await orchestrator.create(UnregisteredForm())

        assert exc_info.value.type_id == "never_registered"
        assert recording_handler.calls == []
        assert remote_client.created == []

    @pytest.mark.asyncio
    async def test_handler_factory_error_is_logged_with_trace_id(self, registry, remote_client, caplog):
        """Test a factory producing a non-handler raises unchanged and is logged."""
        registry.register("leave_approval", lambda: object(), request_type=LeaveForm)
        orchestrator = ApprovalOrchestrator(registry, remote_client)

        with caplog.at_level(logging.ERROR, logger="approval_core"):
            with pytest.raises(InvalidHandlerError):
                await orchestrator.create(LeaveForm(employee_id="E1", days=1))

        record = caplog.records[-1]
        assert "Handler construction failed" in record.getMessage()
        assert record.fields["trace_id"]
        assert record.fields["type_id"] == "leave_approval"
        assert remote_client.created == []


class TestPostCreateFailures:
    """Tests for failures after the remote instance exists."""

    @pytest.mark.asyncio
    async def test_post_process_failure_is_warning(self, registry, remote_client, event_bridge, recorded_events):
        """Test a post_process error still yields a successful outcome."""
        handler = RecordingHandler(failures={"post_process": RuntimeError("audit log down")})
        orchestrator = make_orchestrator(registry, handler, remote_client, event_bridge)

        outcome = await orchestrator.create(LeaveForm())

        assert outcome.instance_id == "I-1"
        assert outcome.has_warnings
        assert "audit log down" in outcome.warnings[0]
        assert len(remote_client.created) == 1
        assert "on_create_failure" not in handler.calls
        warnings = [p for name, p in recorded_events if name == EventNames.LIFECYCLE_WARNING]
        assert warnings[0]["instance_id"] == "I-1"

    @pytest.mark.asyncio
    async def test_post_process_cancellation_is_warning(self, registry, remote_client):
        handler = RecordingHandler(failures={"post_process": asyncio.CancelledError()})
        orchestrator = make_orchestrator(registry, handler, remote_client)

        outcome = await orchestrator.create(LeaveForm())

        assert outcome.instance_id == "I-1"
        assert "CancelledError" in outcome.warnings[0]


class TestCancellation:
    """Tests for cancellation before the remote instance exists."""

    @pytest.mark.asyncio
    async def test_cancel_during_remote_create(self, registry, recording_handler):
        """Test cancellation runs the failure hook and still propagates."""
        remote_client = BlockingRemoteClient()
        orchestrator = make_orchestrator(registry, recording_handler, remote_client)

        task = asyncio.create_task(orchestrator.create(LeaveForm()))
        await remote_client.started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert recording_handler.calls == ["validate", "pre_process", "on_create_failure"]
        error = recording_handler.errors[0]
        assert isinstance(error, CreateCancelledError)
        assert error.stage is LifecycleStage.PRE_PROCESSED
        assert error.retryable is True

    @pytest.mark.asyncio
    async def test_cancel_raised_by_validate(self, registry):
        handler = RecordingHandler(failures={"validate": asyncio.CancelledError()})
        orchestrator = make_orchestrator(registry, handler)

        with pytest.raises(asyncio.CancelledError):
            await orchestrator.create(LeaveForm())

        assert isinstance(handler.errors[0], CreateCancelledError)
        assert handler.errors[0].stage is LifecycleStage.START
