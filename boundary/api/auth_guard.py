"""Auth Guard — stops requests without a credential before any handler work.

Invariants:
    - Runs once per request, before body parsing, validation or service calls
    - Token absent → Deny; token present → Allow, unless a TokenVerifier is
      configured and returns Deny
    - Stateless: all inputs come from the request, nothing is cached
    - Denial response produced here: browsers get a 303 redirect to the login
      page, API clients get the uniform envelope with status 401

Design Decisions:
    - guard.dependency is mounted on guarded endpoints only; denial raises
      AuthDeniedError, rendered by denial_response() via the registered
      exception handler
    - Token looked up in the Authorization bearer header first, then the
      cookie, through HTTPBearer and APIKeyCookie so both schemes appear
      in the OpenAPI document
"""

import inspect
import logging
from urllib.parse import quote

from fastapi import Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from boundary.core.auth_decision import Allow, AuthDecision, Deny
from boundary.core.errors import AuthDeniedError
from boundary.core.repository_protocols import TokenVerifier

logger = logging.getLogger(__name__)


class AuthGuard:
    """Presence check for a credential token, with optional verification."""

    def __init__(
        self,
        cookie_name: str = "session_token",
        login_url: str = "/login",
        verifier: TokenVerifier | None = None,
    ):
        self.cookie_name = cookie_name
        self.login_url = login_url
        self._verifier = verifier
        self.bearer = HTTPBearer(auto_error=False)
        self.cookie = APIKeyCookie(name=cookie_name, auto_error=False)
        self.dependency = self._build_dependency()

    async def extract_token(self, request: Request) -> str | None:
        """Bearer token from Authorization header, else the session cookie."""
        return _pick_token(await self.bearer(request), await self.cookie(request))

    async def has_token(self, request: Request) -> bool:
        return await self.extract_token(request) is not None

    async def guard(self, request: Request) -> AuthDecision:
        return await self.decide(request, await self.extract_token(request))

    async def decide(self, request: Request, token: str | None) -> AuthDecision:
        """Allow or Deny for an already extracted token."""
        if token is None:
            return Deny(self.redirect_target(request))
        if self._verifier is None:
            return Allow()
        decision = self._verifier.verify_token(token)
        if inspect.isawaitable(decision):
            decision = await decision
        if isinstance(decision, Deny):
            return Deny(
                decision.redirect_target or self.redirect_target(request),
                decision.reason,
            )
        return Allow()

    def redirect_target(self, request: Request) -> str:
        """Login URL carrying the originally requested path as ?next=."""
        requested = request.url.path
        if request.url.query:
            requested = f"{requested}?{request.url.query}"
        return f"{self.login_url}?next={quote(requested, safe='')}"

    def _build_dependency(self):
        bearer, cookie = self.bearer, self.cookie

        async def require_token(
            request: Request,
            credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
            cookie_token: str | None = Depends(cookie),
        ) -> None:
            """FastAPI dependency: raises AuthDeniedError on Deny."""
            decision = await self.decide(
                request, _pick_token(credentials, cookie_token),
            )
            if isinstance(decision, Deny):
                logger.info(
                    f"Request to {request.url.path} denied: {decision.reason}",
                    extra={"path": request.url.path},
                )
                raise AuthDeniedError(decision.redirect_target)

        return require_token


def _pick_token(
    credentials: HTTPAuthorizationCredentials | None, cookie_token: str | None,
) -> str | None:
    if credentials is not None and credentials.credentials.strip():
        return credentials.credentials.strip()
    return cookie_token or None


def denial_response(request: Request, exc: AuthDeniedError) -> Response:
    """Redirect for browsers, 401 envelope for API clients."""
    if "text/html" in request.headers.get("accept", ""):
        return RedirectResponse(exc.redirect_target, status_code=303)
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_envelope().to_wire(),
        headers={"WWW-Authenticate": "Bearer"},
    )
