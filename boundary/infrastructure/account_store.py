"""In-Memory Account Store — AccountRepository implementation for a single process.

Invariants:
    - Ids are assigned sequentially from 1, never reused
    - Emails unique (case-insensitive); duplicates raise ConflictError
    - All mutations serialized by one asyncio.Lock per store instance
    - Store instances are owned by the application factory (one per app)
"""

import asyncio
import itertools
import logging
from datetime import datetime, timezone

from boundary.core.domain_types import AccountId
from boundary.core.errors import ConflictError, ResourceNotFoundError
from boundary.schemas.account import Account

logger = logging.getLogger(__name__)


class InMemoryAccountStore:
    """Dict-backed account storage."""

    def __init__(self):
        self._accounts: dict[AccountId, Account] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def add(
        self, email: str, display_name: str, age: int | None = None,
        roles: list[str] | None = None, address: dict | None = None,
    ) -> Account:
        async with self._lock:
            if self._find(email) is not None:
                raise ConflictError(f"Account with email '{email}' already exists")
            account = Account(
                id=next(self._ids),
                email=email.lower(),
                display_name=display_name,
                age=age,
                roles=roles or ["member"],
                address=address,
                created_at=datetime.now(timezone.utc),
            )
            self._accounts[AccountId(account.id)] = account
        return account

    async def get(self, account_id: AccountId) -> Account | None:
        return self._accounts.get(account_id)

    async def find_by_email(self, email: str) -> Account | None:
        return self._find(email)

    async def update_display_name(
        self, account_id: AccountId, display_name: str,
    ) -> Account:
        async with self._lock:
            account = self._accounts.get(account_id)
            if account is None:
                raise ResourceNotFoundError("Account", account_id)
            updated = account.model_copy(update={"display_name": display_name})
            self._accounts[account_id] = updated
        logger.info(f"Account {account_id} renamed")
        return updated

    async def list(self, limit: int, offset: int) -> list[Account]:
        ordered = sorted(self._accounts.values(), key=lambda a: a.id)
        return ordered[offset:offset + limit]

    def _find(self, email: str) -> Account | None:
        needle = email.lower()
        for account in self._accounts.values():
            if account.email == needle:
                return account
        return None
