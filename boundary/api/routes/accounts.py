"""Account Routes — endpoint declarations for the account service.

Invariants:
    - Each route is one Endpoint triple: schema, service operation, status mapping
    - All account routes are guarded
    - Routes contain no logic; mount_endpoint does the translation
"""

from fastapi import APIRouter

from boundary.api.auth_guard import AuthGuard
from boundary.api.endpoint_routes import mount_endpoint
from boundary.core.domain_types import InputSource
from boundary.core.endpoint import Endpoint
from boundary.schemas.account import (
    ACCOUNT_LOOKUP,
    LIST_ACCOUNTS,
    REGISTER_ACCOUNT,
    UPDATE_ACCOUNT,
)
from boundary.services.accounts import AccountService
from boundary.services.pipeline import RequestPipeline


def build_router(
    service: AccountService, pipeline: RequestPipeline, guard: AuthGuard,
) -> APIRouter:
    router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])

    mount_endpoint(router, Endpoint(
        "register_account", REGISTER_ACCOUNT, service.register_account,
        success_status=201, requires_auth=True,
        description="Register a new account.",
    ), "POST", "", pipeline, guard)

    mount_endpoint(router, Endpoint(
        "list_accounts", LIST_ACCOUNTS, service.list_accounts,
        source=InputSource.QUERY, requires_auth=True,
        description="List accounts with pagination.",
    ), "GET", "", pipeline, guard)

    mount_endpoint(router, Endpoint(
        "get_account", ACCOUNT_LOOKUP, service.get_account,
        source=InputSource.QUERY, requires_auth=True,
    ), "GET", "/{account_id}", pipeline, guard)

    mount_endpoint(router, Endpoint(
        "update_account", UPDATE_ACCOUNT, service.update_account,
        requires_auth=True,
    ), "PATCH", "/{account_id}", pipeline, guard)

    return router
