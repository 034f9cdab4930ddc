"""Domain Types — closed vocabularies shared by every pipeline stage.

Invariants:
    - ErrorKind is the only way to classify a failure (no raw string matching)
    - FieldType covers every shape a Schema descriptor can declare
    - RequestId wraps the per-request identifier — never a bare str in logs/context

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

RequestId = NewType("RequestId", str)
AccountId = NewType("AccountId", int)


# ─── Enums ───────────────────────────────────────────────────────

class ErrorKind(str, Enum):
    """Why a request failed. Each kind maps to one transport status."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


class FieldType(str, Enum):
    """Primitive and composite field types a Schema can declare."""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    LIST = "list"
    OBJECT = "object"


class UnknownFieldPolicy(str, Enum):
    """What the validator does with keys the schema does not declare."""
    REJECT = "reject"
    STRIP = "strip"


class InputSource(str, Enum):
    """Where an endpoint reads its raw input from (path params always merged)."""
    BODY = "body"
    QUERY = "query"
