"""Envelope Builder — tests for the uniform response contract.

Tests cover:
    - Ok → success envelope, Err → failure envelope
    - data/error mutual exclusion over both variants
    - invalid envelopes rejected at construction
    - status resolution from ErrorKind with defaults and overrides
    - pydantic models / dataclasses serialized to plain data
"""

from dataclasses import dataclass
from datetime import datetime, timezone

import pytest
from pydantic import BaseModel, ValidationError

from boundary.core.domain_types import ErrorKind
from boundary.core.envelope import (
    DEFAULT_STATUS_CODES,
    ResponseEnvelope,
    build_envelope,
    failure_envelope,
    resolve_status,
)
from boundary.core.result import Err, Ok


# ─── build_envelope ──────────────────────────────────────────────

def test_ok_maps_to_success_envelope():
    envelope = build_envelope(Ok({"id": 1}))
    assert envelope.to_wire() == {"success": True, "data": {"id": 1}, "error": None}


def test_err_maps_to_failure_envelope():
    envelope = build_envelope(Err(ErrorKind.NOT_FOUND, "Account '9' not found"))
    assert envelope.to_wire() == {
        "success": False, "data": None, "error": "Account '9' not found",
    }


@pytest.mark.parametrize("result", [
    Ok({"id": 1}),
    Ok([]),
    Ok(0),
    Ok(""),
    *[Err(kind, f"{kind.value} failure") for kind in ErrorKind],
])
def test_exactly_one_of_data_and_error_is_set(result):
    wire = build_envelope(result).to_wire()
    assert (wire["data"] is None) != (wire["error"] is None)
    assert wire["success"] is (wire["error"] is None)


def test_build_envelope_rejects_non_results():
    with pytest.raises(TypeError):
        build_envelope({"id": 1})


# ─── Envelope invariant ──────────────────────────────────────────

def test_success_envelope_requires_data():
    with pytest.raises(ValidationError):
        ResponseEnvelope(success=True, data=None, error=None)


def test_success_envelope_rejects_error():
    with pytest.raises(ValidationError):
        ResponseEnvelope(success=True, data={"id": 1}, error="boom")


def test_failure_envelope_rejects_data():
    with pytest.raises(ValidationError):
        ResponseEnvelope(success=False, data={"id": 1}, error="boom")


def test_failure_envelope_requires_error():
    with pytest.raises(ValidationError):
        ResponseEnvelope(success=False)


def test_failure_envelope_helper():
    assert failure_envelope("nope").to_wire() == {
        "success": False, "data": None, "error": "nope",
    }


# ─── resolve_status ──────────────────────────────────────────────

def test_default_status_codes():
    assert DEFAULT_STATUS_CODES == {
        ErrorKind.VALIDATION: 400,
        ErrorKind.UNAUTHORIZED: 401,
        ErrorKind.NOT_FOUND: 404,
        ErrorKind.CONFLICT: 409,
        ErrorKind.INTERNAL: 500,
        ErrorKind.TIMEOUT: 504,
    }


@pytest.mark.parametrize("kind", list(ErrorKind))
def test_resolve_status_uses_default_mapping(kind):
    assert resolve_status(Err(kind, "x")) == DEFAULT_STATUS_CODES[kind]


def test_resolve_status_success_status():
    assert resolve_status(Ok({"id": 1})) == 200
    assert resolve_status(Ok({"id": 1}), success_status=201) == 201


def test_resolve_status_override_and_fallback():
    overrides = {ErrorKind.NOT_FOUND: 410}
    assert resolve_status(Err(ErrorKind.NOT_FOUND, "gone"), overrides) == 410
    assert resolve_status(Err(ErrorKind.CONFLICT, "dup"), overrides) == 409


# ─── Serialization ───────────────────────────────────────────────

class _Item(BaseModel):
    id: int
    created_at: datetime


@dataclass
class _Point:
    x: int
    y: int


def test_pydantic_data_serialized_to_json_compatible_dict():
    stamp = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    envelope = build_envelope(Ok({"items": [_Item(id=1, created_at=stamp)]}))
    assert envelope.data == {
        "items": [{"id": 1, "created_at": "2024-01-02T03:04:05Z"}],
    }


def test_dataclass_data_serialized_to_dict():
    assert build_envelope(Ok(_Point(1, 2))).data == {"x": 1, "y": 2}
