"""
api/routes/v1/auth.py -- Login / logout endpoints.

Routes:
  POST /login   -- password login; returns {"token"} and sets the signed cookie
  POST /logout  -- clears the cookie; 200

Status contract for /login (errors raised by AuthService.login, mapped in
api/main.py):
  200 {token}   success
  400           email or password missing (or no body at all)
  404           no user with that email / admin-flagged user without admin record
  401           wrong password
  500           unexpected failure

Cache-Control: no-store on login responses so proxies never cache a token.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse
from auth.dependencies import get_auth_service
from auth.service import AuthService
from auth.tokens import clear_auth_cookie, set_auth_cookie

# Auth policy: both endpoints are public.
router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(
    body: Optional[LoginRequest] = None,
    auth: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Authenticate with email and password.

    The token is delivered twice: in the JSON body for API clients and as an
    httpOnly signed cookie for the browser frontend. Either works on its own.
    """
    body = body or LoginRequest()
    result = auth.login(body.email, body.password)

    resp = JSONResponse(status_code=200, content=LoginResponse(token=result.token).model_dump())
    set_auth_cookie(resp, auth.sign_cookie(result.token))
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout")
async def logout() -> JSONResponse:
    """Clear the auth cookie. The token itself stays valid until it expires."""
    resp = JSONResponse(content={"message": "Logged out."})
    clear_auth_cookie(resp)
    return resp
