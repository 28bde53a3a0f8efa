"""
auth/service.py -- The Auth Module entry point: configured secrets + login flow.

AuthService bundles everything that needs configuration:
  - password hashing / comparison (bcrypt, cost 12)
  - the AES envelope helper (auth/crypto.py)
  - JWT issue / verify (auth/tokens.py)
  - the login state machine

Configuration is an immutable AuthConfig passed to the constructor; nothing
here reads the environment. api/main.py builds one from Settings at startup,
tests build their own with throwaway keys.

Identity lookups go through two narrow collaborator protocols so the service
does not depend on the SQL store. In production both are the same UserStore.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from auth import tokens
from auth.crypto import AESCipher
from auth.errors import (
    AuthError,
    InternalError,
    InvalidCredentialError,
    MissingCredentialsError,
    NotFoundError,
)
from auth.models import Admin, User
from core.config import Settings

logger = logging.getLogger("libraryhub.auth")


class UserLookup(Protocol):
    def get_by_email(self, email: str) -> User | None: ...

    def get_by_id(self, user_id: int) -> User | None: ...


class AdminLookup(Protocol):
    def get_admin_by_user_id(self, user_id: int) -> Admin | None: ...


@dataclass(frozen=True)
class AuthConfig:
    aes_key: str
    algorithm: str
    jwt_secret: str
    cookie_secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthConfig":
        return cls(
            aes_key=settings.aes_key,
            algorithm=settings.algorithm,
            jwt_secret=settings.jwt_secret,
            cookie_secret=settings.effective_cookie_secret,
        )


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


class AuthService:
    """Credential checks, token handling and the AES helper for one configuration.

    Usage:
        auth = AuthService(AuthConfig(...), users=store, admins=store)
        result = auth.login("a@x.com", "pw")
        payload = auth.verify_token(result.token)   # {"id": .., "isAdmin": .., ...}
    """

    def __init__(self, config: AuthConfig, users: UserLookup, admins: AdminLookup) -> None:
        self.config = config
        self.users = users
        self.admins = admins
        self._cipher = AESCipher(config.aes_key, config.algorithm)

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    @staticmethod
    def hash_password(plain: str) -> str:
        return tokens.hash_password(plain)

    @staticmethod
    def compare_password(plain: str, hashed: str) -> bool:
        return tokens.compare_password(plain, hashed)

    # ------------------------------------------------------------------
    # AES envelope
    # ------------------------------------------------------------------

    def encrypt_aes(self, plaintext: str) -> str:
        return self._cipher.encrypt(plaintext)

    def decrypt_aes(self, envelope: str) -> str:
        return self._cipher.decrypt(envelope)

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue_token(self, user: User) -> str:
        return tokens.create_access_token(user.id, user.is_admin, self.config.jwt_secret)

    def verify_token(self, token: str) -> dict:
        """Return the payload of a valid token; raise InvalidOrExpiredTokenError otherwise."""
        return tokens.decode_access_token(token, self.config.jwt_secret)

    def sign_cookie(self, token: str) -> str:
        return tokens.sign_cookie_value(token, self.config.cookie_secret)

    def unsign_cookie(self, value: str) -> str | None:
        return tokens.unsign_cookie_value(value, self.config.cookie_secret)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str | None, password: str | None) -> LoginResult:
        """Run the login state machine and return the issued token.

        Raises:
            MissingCredentialsError: email or password missing (400).
            NotFoundError: no user with that email (404), or an is_admin user
                without its Admin record (404, "User data not found").
            InvalidCredentialError: password mismatch (401).
            InternalError: a collaborator or bcrypt failed unexpectedly (500).
        """
        if not email or not password:
            raise MissingCredentialsError("Email or password is missing")

        try:
            user = self.users.get_by_email(email)
            if user is None:
                raise NotFoundError("User not found")

            if not self.compare_password(password, user.password):
                raise InvalidCredentialError("Access denied: Invalid password")

            if user.is_admin and self.admins.get_admin_by_user_id(user.id) is None:
                logger.warning("user %s is flagged admin but has no admin record", user.id)
                raise NotFoundError("User data not found")

            token = self.issue_token(user)
        except (MissingCredentialsError, NotFoundError, InvalidCredentialError):
            raise
        except Exception as exc:
            logger.exception("Error logging in user")
            detail = exc.message if isinstance(exc, AuthError) else str(exc)
            raise InternalError(f"Failed to log in: {detail}") from exc

        logger.info("user %s logged in (admin=%s)", user.id, user.is_admin)
        return LoginResult(token=token, user=user)
