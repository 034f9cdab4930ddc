"""Account Contracts — input schema descriptors and the public account shape.

Invariants:
    - Every account endpoint declares its input as a Schema descriptor
    - email is lower-cased by the service, never by the schema (schemas don't transform)
    - roles drawn from a closed set; at most 3
    - Account is the only shape returned in envelope data for account endpoints
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from boundary.core.domain_types import FieldType, UnknownFieldPolicy
from boundary.core.schema import FieldSpec, Schema

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
ACCOUNT_ROLES = ("admin", "member", "viewer")


ADDRESS = Schema(
    "address",
    (
        FieldSpec("street", FieldType.STRING, min_length=1, max_length=200),
        FieldSpec("city", FieldType.STRING, min_length=1, max_length=100),
        FieldSpec(
            "postal_code", FieldType.STRING, required=False,
            pattern=r"^[A-Za-z0-9 -]{3,10}$",
        ),
    ),
    unknown_fields=UnknownFieldPolicy.STRIP,
)

ACCOUNT_ID = FieldSpec(
    "account_id", FieldType.INTEGER, minimum=1,
    description="Numeric account identifier",
)

DISPLAY_NAME = FieldSpec(
    "display_name", FieldType.STRING, min_length=1, max_length=100,
)

REGISTER_ACCOUNT = Schema(
    "register_account",
    (
        FieldSpec(
            "email", FieldType.STRING, max_length=254, pattern=EMAIL_PATTERN,
        ),
        DISPLAY_NAME,
        FieldSpec(
            "age", FieldType.INTEGER, required=False, minimum=13, maximum=150,
        ),
        FieldSpec(
            "roles", FieldType.LIST, required=False, max_length=3,
            items=FieldSpec("role", FieldType.STRING, choices=ACCOUNT_ROLES),
        ),
        FieldSpec("address", FieldType.OBJECT, required=False, schema=ADDRESS),
    ),
)

ACCOUNT_LOOKUP = Schema("account_lookup", (ACCOUNT_ID,))

UPDATE_ACCOUNT = Schema("update_account", (ACCOUNT_ID, DISPLAY_NAME))

LIST_ACCOUNTS = Schema(
    "list_accounts",
    (
        FieldSpec(
            "limit", FieldType.INTEGER, required=False, default=10,
            minimum=1, maximum=100,
        ),
        FieldSpec(
            "offset", FieldType.INTEGER, required=False, default=0, minimum=0,
        ),
    ),
)


class Account(BaseModel):
    """Account as returned to callers."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    display_name: str
    age: int | None = None
    roles: list[str] = ["member"]
    address: dict | None = None
    created_at: datetime
