"""
auth/errors.py -- Typed failures raised by the Auth Module.

The Auth Module raises these instead of building HTTP responses. Each class
carries the status the HTTP boundary maps it to; api/main.py turns any
AuthError into the standard error envelope. Call sites that need a different
status for the same cause (the permission gate answers 403 for a bad token)
override it explicitly.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class. `code` is the machine-readable error code in the envelope."""

    status_code: int = 500
    code: str = "auth_error"
    default_message: str = "Authentication failed."

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class MissingCredentialsError(AuthError):
    status_code = 400
    code = "missing_credentials"
    default_message = "Request data is incorrect or unfulfilled"


class NotFoundError(AuthError):
    status_code = 404
    code = "not_found"
    default_message = "User not found"


class InvalidCredentialError(AuthError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Access denied: Invalid password"


class InvalidOrExpiredTokenError(AuthError):
    status_code = 401
    code = "invalid_token"
    default_message = "Invalid or expired token"


class InternalError(AuthError):
    status_code = 500
    code = "internal_error"
    default_message = "An unexpected error occurred"


class HashError(AuthError):
    """Password hashing or comparison failed inside bcrypt.

    Deliberately generic: a corrupt stored hash and an internal bcrypt failure
    look the same to the caller.
    """

    status_code = 500
    code = "hash_error"
    default_message = "Password hashing failed"
