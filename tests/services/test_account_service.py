"""Account Service — tests for business rules, independent of HTTP.

Tests cover:
    - register lower-cases the email and rejects duplicates with CONFLICT
    - get returns NOT_FOUND for unknown ids
    - update propagates ResourceNotFoundError from the store
    - list paginates in id order
"""

import pytest

from boundary.core.domain_types import ErrorKind
from boundary.core.errors import ConflictError, ResourceNotFoundError
from boundary.core.result import Err, Ok
from boundary.core.schema import validate
from boundary.infrastructure.account_store import InMemoryAccountStore
from boundary.schemas.account import (
    ACCOUNT_LOOKUP,
    LIST_ACCOUNTS,
    REGISTER_ACCOUNT,
    UPDATE_ACCOUNT,
)
from boundary.services.accounts import AccountService


@pytest.fixture
def store():
    return InMemoryAccountStore()


@pytest.fixture
def service(store):
    return AccountService(store)


async def _register(service, email="Ada@Example.com", name="Ada"):
    return await service.register_account(
        validate(REGISTER_ACCOUNT, {"email": email, "display_name": name}),
    )


async def test_register_account_returns_ok(service):
    result = await _register(service)
    assert isinstance(result, Ok)
    assert result.value.id == 1
    assert result.value.email == "ada@example.com"
    assert result.value.roles == ["member"]


async def test_register_duplicate_email_is_conflict(service):
    await _register(service)
    result = await _register(service, email="ADA@example.com")
    assert result == Err(
        ErrorKind.CONFLICT, "Account with email 'ada@example.com' already exists",
    )


async def test_get_account(service):
    await _register(service)
    result = await service.get_account(validate(ACCOUNT_LOOKUP, {"account_id": 1}))
    assert isinstance(result, Ok)
    assert result.value.display_name == "Ada"


async def test_get_missing_account_is_not_found(service):
    result = await service.get_account(validate(ACCOUNT_LOOKUP, {"account_id": 42}))
    assert result == Err(ErrorKind.NOT_FOUND, "Account '42' not found")


async def test_update_account(service):
    await _register(service)
    result = await service.update_account(
        validate(UPDATE_ACCOUNT, {"account_id": 1, "display_name": "Countess"}),
    )
    assert result.value.display_name == "Countess"


async def test_update_missing_account_raises(service):
    with pytest.raises(ResourceNotFoundError):
        await service.update_account(
            validate(UPDATE_ACCOUNT, {"account_id": 5, "display_name": "X"}),
        )


async def test_list_accounts_paginates(service):
    for i in range(3):
        await _register(service, email=f"user{i}@example.com", name=f"User {i}")
    result = await service.list_accounts(
        validate(LIST_ACCOUNTS, {"limit": 2, "offset": 1}),
    )
    assert [a.id for a in result.value["accounts"]] == [2, 3]
    assert result.value["pagination"] == {"limit": 2, "offset": 1}


async def test_store_rejects_duplicate_email_directly(store):
    await store.add("a@b.com", "A")
    with pytest.raises(ConflictError):
        await store.add("A@B.com", "B")
