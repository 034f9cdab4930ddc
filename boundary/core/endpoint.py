"""Endpoint Configuration — the (schema, operation, status mapping) triple.

Invariants:
    - An Endpoint is immutable once declared
    - status_codes always covers every ErrorKind (overrides merged over defaults)
    - RequestContext is created per request and passed explicitly — never global
"""

import uuid
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Union

from boundary.core.domain_types import ErrorKind, InputSource, RequestId
from boundary.core.envelope import DEFAULT_STATUS_CODES, resolve_status
from boundary.core.result import ServiceResult
from boundary.core.schema import Schema, ValidatedInput

Operation = Callable[
    [ValidatedInput], Union[ServiceResult, Awaitable[ServiceResult]],
]


@dataclass(frozen=True)
class Endpoint:
    """One logical endpoint: what it accepts, what it runs, how failures map to status."""
    name: str
    schema: Schema
    operation: Operation
    status_codes: Mapping[ErrorKind, int] = field(default_factory=dict)
    success_status: int = 200
    source: InputSource = InputSource.BODY
    requires_auth: bool = False
    timeout_seconds: float | None = None
    description: str | None = None

    def __post_init__(self):
        merged = {**DEFAULT_STATUS_CODES, **self.status_codes}
        object.__setattr__(self, "status_codes", MappingProxyType(merged))

    def status_for(self, result: ServiceResult) -> int:
        return resolve_status(result, self.status_codes, self.success_status)


@dataclass(frozen=True)
class RequestContext:
    """Per-request identifiers threaded through logging and error context."""
    request_id: RequestId
    endpoint: str
    method: str | None = None
    path: str | None = None

    @classmethod
    def new(
        cls, endpoint: str, request_id: str | None = None,
        method: str | None = None, path: str | None = None,
    ) -> "RequestContext":
        return cls(
            request_id=RequestId(request_id or uuid.uuid4().hex),
            endpoint=endpoint, method=method, path=path,
        )

    def log_extra(self) -> dict:
        return {
            "request_id": self.request_id,
            "endpoint": self.endpoint,
            "method": self.method,
            "path": self.path,
        }
