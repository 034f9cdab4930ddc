"""Response Envelope Builder — wraps every service outcome in one wire shape.

Invariants:
    - Wire shape is always {"success": bool, "data": T | null, "error": str | null}
    - success == True iff data is not None and error is None
    - build_envelope and resolve_status are pure — no IO, no logging
    - Status codes come from an explicit ErrorKind → int mapping

Design Decisions:
    - Pydantic model with a model_validator: the invariant is checked on
      every construction, including failure_envelope()
"""

from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from boundary.core.domain_types import ErrorKind
from boundary.core.result import Err, Ok, ServiceResult

DEFAULT_STATUS_CODES: Mapping[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
    ErrorKind.TIMEOUT: 504,
}


class ResponseEnvelope(BaseModel):
    """Uniform response contract returned by every endpoint."""

    model_config = ConfigDict(frozen=True)

    success: bool
    data: Any = None
    error: str | None = None

    @model_validator(mode="after")
    def check_exclusive_payload(self) -> "ResponseEnvelope":
        if self.success:
            if self.data is None or self.error is not None:
                raise ValueError("success envelope requires data and no error")
        elif self.data is not None or self.error is None:
            raise ValueError("failure envelope requires error and no data")
        return self

    def to_wire(self) -> dict:
        """Exact JSON-ready wire shape (all three keys always present)."""
        return {"success": self.success, "data": self.data, "error": self.error}


def failure_envelope(message: str) -> ResponseEnvelope:
    return ResponseEnvelope(success=False, data=None, error=message)


def build_envelope(result: ServiceResult) -> ResponseEnvelope:
    """Map Ok → success envelope, Err → failure envelope."""
    if isinstance(result, Ok):
        return ResponseEnvelope(
            success=True, data=_to_plain(result.value), error=None,
        )
    if isinstance(result, Err):
        return failure_envelope(result.message)
    raise TypeError(f"Expected Ok or Err, got {type(result).__name__}")


def resolve_status(
    result: ServiceResult,
    status_codes: Mapping[ErrorKind, int] = DEFAULT_STATUS_CODES,
    success_status: int = 200,
) -> int:
    """Transport status for a result. Unmapped kinds fall back to the defaults, then 500."""
    if isinstance(result, Ok):
        return success_status
    return status_codes.get(
        result.kind, DEFAULT_STATUS_CODES.get(result.kind, 500),
    )


def _to_plain(value: Any) -> Any:
    """Convert pydantic models / dataclasses into JSON-compatible structures."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, Mapping):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value
