"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """An account that can log in.

    password always holds a bcrypt hash once the record is stored; the Auth
    Module reads it for comparison and never writes it.

    is_admin marks accounts that must have a linked Admin record. Login
    refuses an is_admin user whose Admin row is missing.
    """

    email: str
    password: str  # bcrypt hash
    name: str | None = None
    is_active: bool = True
    is_admin: bool = False
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class Admin:
    """Personal data of an administrator, one-to-one with a User.

    user is the linked User id. Store reads attach the full record as
    user_record (None if the User row was deleted underneath it).
    """

    address: str
    birth_date: str  # ISO 8601 date
    cpf: str
    name: str
    phone: str
    user: int | None = None
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None
    user_record: User | None = None
