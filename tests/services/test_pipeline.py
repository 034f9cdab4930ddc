"""Request Pipeline — tests for Validator → Service → Envelope sequencing.

Tests cover:
    - Scenario A: missing field → 400 "age: required", service never called
    - Scenario B: Ok({"id": 1}) → 200 success envelope
    - Scenario D: unexpected service fault → 500 "Internal error", nothing leaked
    - business errors (returned Err or raised BusinessError) keep their message
    - each stage runs at most once
    - timeout cancels the service and releases its resources
    - client disconnect cancels the service and emits no envelope
    - idempotence for identical input
"""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from boundary.core.domain_types import ErrorKind, FieldType
from boundary.core.endpoint import Endpoint, RequestContext
from boundary.core.errors import ClientDisconnected, ConflictError, ResourceNotFoundError
from boundary.core.result import Err, Ok
from boundary.core.schema import FieldSpec, Schema, ValidatedInput, validate
from boundary.infrastructure.account_store import InMemoryAccountStore
from boundary.schemas.account import LIST_ACCOUNTS
from boundary.services.accounts import AccountService
from boundary.services.pipeline import RequestPipeline

PROFILE = Schema(
    "profile",
    (
        FieldSpec("email", FieldType.STRING),
        FieldSpec("age", FieldType.NUMBER),
    ),
)
VALID = {"email": "a@b.com", "age": 30}


def _endpoint(operation, **kwargs) -> Endpoint:
    return Endpoint("create_profile", PROFILE, operation, **kwargs)


@pytest.fixture
def pipeline():
    return RequestPipeline(service_timeout_seconds=2.0, disconnect_poll_seconds=0.01)


# ─── Scenarios ───────────────────────────────────────────────────

async def test_scenario_a_missing_field(pipeline):
    operation = AsyncMock(return_value=Ok({"id": 1}))
    outcome = await pipeline.handle(_endpoint(operation), {"email": "a@b.com"})
    assert outcome.status_code == 400
    assert outcome.envelope.to_wire() == {
        "success": False, "data": None, "error": "age: required",
    }
    assert outcome.error_kind is ErrorKind.VALIDATION
    operation.assert_not_called()


async def test_scenario_b_success(pipeline):
    operation = AsyncMock(return_value=Ok({"id": 1}))
    outcome = await pipeline.handle(_endpoint(operation), VALID)
    assert outcome.status_code == 200
    assert outcome.envelope.to_wire() == {
        "success": True, "data": {"id": 1}, "error": None,
    }
    assert outcome.error_kind is None


async def test_scenario_d_unrecoverable_fault(pipeline):
    operation = AsyncMock(side_effect=RuntimeError("db password=hunter2 refused"))
    outcome = await pipeline.handle(_endpoint(operation), VALID)
    assert outcome.status_code == 500
    assert outcome.envelope.to_wire() == {
        "success": False, "data": None, "error": "Internal error",
    }
    assert "hunter2" not in str(outcome.envelope.to_wire())


# ─── Business errors ─────────────────────────────────────────────

async def test_returned_err_maps_to_kind_status(pipeline):
    operation = AsyncMock(return_value=Err(ErrorKind.CONFLICT, "Email taken"))
    outcome = await pipeline.handle(_endpoint(operation), VALID)
    assert outcome.status_code == 409
    assert outcome.envelope.error == "Email taken"


async def test_raised_business_error_becomes_err(pipeline):
    operation = AsyncMock(side_effect=ResourceNotFoundError("Profile", 3))
    outcome = await pipeline.handle(_endpoint(operation), VALID)
    assert outcome.status_code == 404
    assert outcome.envelope.error == "Profile '3' not found"


async def test_raised_conflict_error_becomes_err(pipeline):
    operation = AsyncMock(side_effect=ConflictError("Email taken"))
    outcome = await pipeline.handle(_endpoint(operation), VALID)
    assert outcome.status_code == 409


async def test_internal_err_message_replaced_with_generic(pipeline):
    operation = AsyncMock(return_value=Err(ErrorKind.INTERNAL, "disk /dev/sda1 full"))
    outcome = await pipeline.handle(_endpoint(operation), VALID)
    assert outcome.status_code == 500
    assert outcome.envelope.error == "Internal error"


async def test_internal_kind_given_as_string_is_still_sanitized(pipeline):
    operation = AsyncMock(return_value=Err("internal", "db password=hunter2"))
    outcome = await pipeline.handle(_endpoint(operation), VALID)
    assert outcome.status_code == 500
    assert outcome.envelope.error == "Internal error"
    assert outcome.error_kind is ErrorKind.INTERNAL


async def test_unknown_err_kind_is_internal_error(pipeline):
    async def operation(data):
        return Err("teapot", "short and stout")

    outcome = await pipeline.handle(_endpoint(operation), VALID)
    assert outcome.status_code == 500
    assert outcome.envelope.error == "Internal error"


async def test_null_optional_field_reaches_service_as_default(pipeline):
    service = AccountService(InMemoryAccountStore())
    endpoint = Endpoint("list_accounts", LIST_ACCOUNTS, service.list_accounts)
    outcome = await pipeline.handle(endpoint, {"limit": None})
    assert outcome.status_code == 200
    assert outcome.envelope.data["pagination"] == {"limit": 10, "offset": 0}


async def test_non_result_return_is_internal_error(pipeline):
    operation = AsyncMock(return_value={"id": 1})
    outcome = await pipeline.handle(_endpoint(operation), VALID)
    assert outcome.status_code == 500
    assert outcome.envelope.error == "Internal error"


async def test_custom_status_mapping(pipeline):
    operation = AsyncMock(return_value=Err(ErrorKind.NOT_FOUND, "Gone"))
    endpoint = _endpoint(operation, status_codes={ErrorKind.NOT_FOUND: 410})
    outcome = await pipeline.handle(endpoint, VALID)
    assert outcome.status_code == 410


async def test_success_status_from_endpoint(pipeline):
    operation = AsyncMock(return_value=Ok({"id": 1}))
    outcome = await pipeline.handle(_endpoint(operation, success_status=201), VALID)
    assert outcome.status_code == 201


# ─── Stage sequencing ────────────────────────────────────────────

async def test_each_stage_runs_once(pipeline):
    operation = AsyncMock(return_value=Ok({"id": 1}))
    spy = MagicMock(wraps=validate)
    with patch("boundary.services.pipeline.validate", spy):
        await pipeline.handle(_endpoint(operation), VALID)
    spy.assert_called_once_with(PROFILE, VALID)
    operation.assert_awaited_once()
    (received,), _ = operation.call_args
    assert isinstance(received, ValidatedInput)
    assert received.to_dict() == VALID


async def test_sync_operation_supported(pipeline):
    outcome = await pipeline.handle(
        _endpoint(lambda data: Ok({"email": data["email"]})), VALID,
    )
    assert outcome.envelope.data == {"email": "a@b.com"}


async def test_idempotent_for_identical_input(pipeline):
    endpoint = _endpoint(lambda data: Ok({"email": data["email"]}))
    first = await pipeline.handle(endpoint, VALID)
    second = await pipeline.handle(endpoint, VALID)
    assert first == second


# ─── Timeout and cancellation ────────────────────────────────────

async def test_timeout_cancels_service_and_returns_504(pipeline):
    released = []

    async def slow(data):
        try:
            await asyncio.sleep(5)
        finally:
            released.append(True)
        return Ok({"late": True})

    outcome = await pipeline.handle(_endpoint(slow, timeout_seconds=0.05), VALID)
    assert outcome.status_code == 504
    assert outcome.envelope.error == "Service timed out"
    assert released == [True]


async def test_no_timeout_when_disabled():
    pipeline = RequestPipeline(service_timeout_seconds=None)

    async def brief(data):
        await asyncio.sleep(0.01)
        return Ok({"done": True})

    outcome = await pipeline.handle(_endpoint(brief), VALID)
    assert outcome.status_code == 200


async def test_disconnect_cancels_service_without_envelope(pipeline):
    released = []

    async def slow(data):
        try:
            await asyncio.sleep(5)
        finally:
            released.append(True)
        return Ok({"late": True})

    async def gone():
        return True

    with pytest.raises(ClientDisconnected):
        await pipeline.handle(_endpoint(slow), VALID, is_disconnected=gone)
    assert released == [True]


async def test_connected_client_gets_result(pipeline):
    async def brief(data):
        await asyncio.sleep(0.03)
        return Ok({"done": True})

    async def connected():
        return False

    outcome = await pipeline.handle(_endpoint(brief), VALID, is_disconnected=connected)
    assert outcome.status_code == 200


# ─── Logging ─────────────────────────────────────────────────────

async def test_completion_logged_with_request_context(pipeline, caplog):
    context = RequestContext.new("create_profile", request_id="req-1", path="/p")
    with caplog.at_level(logging.INFO, logger="boundary.services.pipeline"):
        await pipeline.handle(
            _endpoint(AsyncMock(return_value=Ok({"id": 1}))), VALID, context,
        )
    record = next(r for r in caplog.records if r.message == "create_profile -> 200")
    assert record.request_id == "req-1"
    assert record.status_code == 200
