"""
auth/tokens.py -- JWT, password hashing, and signed-cookie utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry {id, isAdmin} plus iat/exp and
       are valid for exactly 7 days (exp = iat + 604800). Verification raises
       InvalidOrExpiredTokenError on any failure -- the gate decides the
       status code.

  Passwords: bcrypt directly, cost factor 12, over the first 72 UTF-8
       bytes of the password. compare_password() returns False for a wrong
       password and raises HashError when bcrypt itself fails (e.g. the
       stored hash is not a bcrypt hash).

  Cookie: the JWT is also delivered as a signed cookie named "cookie".
       itsdangerous.Signer appends an HMAC so a client-forged cookie value is
       rejected before the JWT is even decoded.

Every function takes its secret explicitly; nothing here reads settings.
AuthService (auth/service.py) owns the configured secrets and calls in.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from itsdangerous import BadSignature, Signer
from jose import JWTError, jwt

from auth.errors import HashError, InvalidOrExpiredTokenError

logger = logging.getLogger("libraryhub.auth")

JWT_ALGORITHM = "HS256"
TOKEN_TTL_SECONDS = 7 * 24 * 60 * 60  # 604800, one week
BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of a password; longer input is cut there.
BCRYPT_MAX_BYTES = 72

COOKIE_NAME = "cookie"
TOKEN_HEADER = "x-access-token"
_COOKIE_SALT = "libraryhub.cookie"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain: str) -> str:
    """Return a bcrypt hash (cost 12) of the given plaintext password.

    Call once, when an account is created or its password changes. Passing an
    existing hash hashes the hash; that is a caller error and is not detected.
    """
    try:
        return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")
    except (TypeError, ValueError) as exc:
        logger.error("password hashing failed: %s", exc)
        raise HashError("Error hashing password") from exc


def compare_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except (TypeError, ValueError) as exc:
        logger.error("password comparison failed: %s", exc)
        raise HashError("Password comparison failed") from exc


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, is_admin: bool, secret: str, issued_at: datetime | None = None) -> str:
    """Encode a signed JWT with {id, isAdmin} and a fixed 7-day expiry.

    issued_at defaults to now (UTC); tests pass an older value to mint
    tokens that are already expired.
    """
    iat = issued_at or datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "isAdmin": bool(is_admin),
        "iat": iat,
        "exp": iat + timedelta(seconds=TOKEN_TTL_SECONDS),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, secret: str) -> dict:
    """Verify signature and expiry; return the payload.

    Raises InvalidOrExpiredTokenError for a bad signature, an expired token or
    anything that is not a JWT at all.
    """
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        logger.info("token rejected: %s", exc)
        raise InvalidOrExpiredTokenError() from exc


# ---------------------------------------------------------------------------
# Signed cookie helpers
# ---------------------------------------------------------------------------


def sign_cookie_value(value: str, secret: str) -> str:
    return Signer(secret, salt=_COOKIE_SALT).sign(value).decode("utf-8")


def unsign_cookie_value(signed: str, secret: str) -> str | None:
    """Return the original value, or None if the signature does not match."""
    try:
        return Signer(secret, salt=_COOKIE_SALT).unsign(signed).decode("utf-8")
    except BadSignature:
        logger.info("signed cookie rejected: bad signature")
        return None


def set_auth_cookie(response, signed_token: str) -> None:
    """Write an already-signed JWT (AuthService.sign_cookie) as an httpOnly cookie.

    samesite="none" + secure=True: the frontend is served from another
    origin, so the cookie must travel on cross-site requests, which browsers
    only allow over HTTPS. max_age matches the JWT lifetime.
    """
    response.set_cookie(
        COOKIE_NAME,
        value=signed_token,
        max_age=TOKEN_TTL_SECONDS,
        path="/",
        httponly=True,
        secure=True,
        samesite="none",
    )


def clear_auth_cookie(response) -> None:
    response.delete_cookie(COOKIE_NAME, path="/", httponly=True, secure=True, samesite="none")
