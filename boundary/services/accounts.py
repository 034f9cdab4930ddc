"""Account Service — business logic for account registration and lookup.

Invariants:
    - Every operation takes a ValidatedInput and returns Ok | Err — never sees a request
    - Duplicate email → Err(CONFLICT); missing account → Err(NOT_FOUND)
    - Emails are compared and stored lower-cased
    - Storage errors other than BusinessError propagate (pipeline maps them to Internal)
"""

import logging

from boundary.core.domain_types import AccountId, ErrorKind
from boundary.core.repository_protocols import AccountRepository
from boundary.core.result import Err, Ok, ServiceResult
from boundary.core.schema import ValidatedInput
from boundary.schemas.account import Account

logger = logging.getLogger(__name__)


class AccountService:
    """Account use cases. One method per endpoint."""

    def __init__(self, repository: AccountRepository):
        self._repository = repository

    async def register_account(
        self, data: ValidatedInput,
    ) -> ServiceResult[Account]:
        """Create an account unless the email is already registered."""
        email = data["email"].lower()
        if await self._repository.find_by_email(email) is not None:
            return Err(
                ErrorKind.CONFLICT,
                f"Account with email '{email}' already exists",
            )
        account = await self._repository.add(
            email=email,
            display_name=data["display_name"],
            age=data.get("age"),
            roles=data.get("roles"),
            address=data.get("address"),
        )
        logger.info(f"Account {account.id} registered")
        return Ok(account)

    async def get_account(
        self, data: ValidatedInput,
    ) -> ServiceResult[Account]:
        account_id = AccountId(data["account_id"])
        account = await self._repository.get(account_id)
        if account is None:
            return Err(ErrorKind.NOT_FOUND, f"Account '{account_id}' not found")
        return Ok(account)

    async def update_account(
        self, data: ValidatedInput,
    ) -> ServiceResult[Account]:
        """Rename an account. Repository raises ResourceNotFoundError for unknown ids."""
        account = await self._repository.update_display_name(
            AccountId(data["account_id"]), data["display_name"],
        )
        return Ok(account)

    async def list_accounts(self, data: ValidatedInput) -> ServiceResult[dict]:
        limit, offset = data["limit"], data["offset"]
        accounts = await self._repository.list(limit=limit, offset=offset)
        return Ok({
            "accounts": accounts,
            "pagination": {"limit": limit, "offset": offset},
        })
