"""
auth/dependencies.py -- FastAPI Depends() gates for authentication.

Two token carriers are accepted, checked in priority order:
  1. x-access-token header -- API clients.
  2. Signed cookie "cookie" -- set by POST /login for browser clients.

verify_jwt() is the basic gate: "does this request bear a currently valid
token". It returns the decoded payload so handlers that care about isAdmin
can read it, but the gate itself never inspects claims.

permission_middleware() is the stricter gate: header only, 403 for a bad
token, and the user behind the token must still exist.

Both raise AuthError subclasses; api/main.py maps them to the error envelope.

Layer rule: no imports from api/ or catalog/.
  This module may import from fastapi because it is part of the FastAPI
  dependency injection system.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import HTTPException, Request

from auth.errors import AuthError, InternalError, InvalidOrExpiredTokenError, MissingCredentialsError, NotFoundError
from auth.service import AuthService
from auth.tokens import COOKIE_NAME, TOKEN_HEADER

logger = logging.getLogger("libraryhub.auth")


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth


def extract_token(request: Request, auth: AuthService) -> str | None:
    """Return the bearer token from the header, else from the signed cookie.

    The header wins when both are present. A cookie whose signature does not
    verify counts as absent.
    """
    token = request.headers.get(TOKEN_HEADER)
    if token:
        return token
    signed = request.cookies.get(COOKIE_NAME)
    if signed:
        return auth.unsign_cookie(signed)
    return None


def verify_jwt(request: Request) -> dict:
    """Require a valid token in the header or signed cookie.

    400 if neither carrier holds a token; on verification failure the status
    the error carries (401 by default). Returns the token payload.
    """
    auth = get_auth_service(request)
    token = extract_token(request, auth)
    if not token:
        raise MissingCredentialsError("Request data is incorrect or unfulfilled")
    try:
        return auth.verify_token(token)
    except AuthError as exc:
        logger.info("Error validating JWT: %s", exc.message)
        raise InvalidOrExpiredTokenError(
            f"Failed to validate JWT: {exc.message}", status_code=exc.status_code or 401
        ) from exc


def require_admin_token(request: Request) -> dict:
    """verify_jwt plus an isAdmin claim check. 403 if the token is not an admin token.

    Trusts the claim as issued at login; it is not re-read from the store.
    """
    payload = verify_jwt(request)
    if not payload.get("isAdmin"):
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Admin access required."},
        )
    return payload


def permission_middleware(verify: Callable[[str], dict] | None = None) -> Callable[[Request], dict]:
    """Build a gate that requires the header token and a live user behind it.

    verify is the token verification function to use; by default the app's
    AuthService.verify_token. Use as a FastAPI dependency:
        @router.post("/admin", dependencies=[Depends(permission_middleware())])

    Statuses: 400 no header, 403 invalid/expired token, 404 user gone,
    500 if the user lookup fails.
    """

    def check_permission(request: Request) -> dict:
        auth = get_auth_service(request)
        token = request.headers.get(TOKEN_HEADER)
        if not token:
            raise MissingCredentialsError("Request data is incorrect or unfulfilled")

        verify_fn = verify or auth.verify_token
        try:
            payload = verify_fn(token)
        except AuthError as exc:
            raise InvalidOrExpiredTokenError("Token is expired or invalid", status_code=403) from exc

        try:
            user = auth.users.get_by_id(payload.get("id"))
        except Exception as exc:
            logger.exception("Error checking permission")
            raise InternalError(f"Failed to check permission: {exc}") from exc
        if user is None:
            raise NotFoundError("User not found")

        # TODO: decide whether admin-only routes should reject non-admin users
        # here; today both branches let the request through.
        if user.is_admin:
            return payload
        return payload

    return check_permission
