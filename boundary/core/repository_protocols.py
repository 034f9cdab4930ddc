"""Boundary Protocols — contracts between the core and its external collaborators.

Invariants:
    - Core and services NEVER import a concrete collaborator
    - All IO operations accessed through Protocol types
    - Implementations provided by the application factory via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO; TokenVerifier may also be sync
"""

from typing import Awaitable, Protocol, Union

from boundary.core.auth_decision import AuthDecision
from boundary.core.domain_types import AccountId
from boundary.schemas.account import Account


class AccountRepository(Protocol):
    """Contract for account storage — implemented outside the core."""
    async def add(
        self, email: str, display_name: str, age: int | None = None,
        roles: list[str] | None = None, address: dict | None = None,
    ) -> Account: ...
    async def get(self, account_id: AccountId) -> Account | None: ...
    async def find_by_email(self, email: str) -> Account | None: ...
    async def update_display_name(
        self, account_id: AccountId, display_name: str,
    ) -> Account: ...
    async def list(self, limit: int, offset: int) -> list[Account]: ...


class TokenVerifier(Protocol):
    """Contract for credential verification — the guard only checks presence without one."""
    def verify_token(
        self, token: str,
    ) -> Union[AuthDecision, Awaitable[AuthDecision]]: ...
