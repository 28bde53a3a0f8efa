"""
API request and response models for LibraryHub REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Password hashes never leave the server: UserResponse has no password field.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Admin, User
from catalog.models import Book, Library

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /login.

    Both fields are optional at the schema level so a missing one reaches
    AuthService.login() and yields the documented 400, not a 422. The password
    is passed through untouched: no stripping and no length cap, so a long
    or space-padded wrong password answers 401 like any other.
    """

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str


# ---------------------------------------------------------------------------
# Errors / health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


# ---------------------------------------------------------------------------
# Users / admins
# ---------------------------------------------------------------------------


class UserIn(BaseModel):
    """Login account for a new admin. The password is hashed exactly as sent."""

    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
    name: Optional[str] = Field(default=None, max_length=255)
    is_active: bool
    is_admin: bool

    @field_validator("email", "name", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class AdminIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    address: str = Field(min_length=1, max_length=500)
    birth_date: date
    cpf: str = Field(min_length=11, max_length=14)
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=32)


class AdminCreate(BaseModel):
    """Request body for POST /admin: the admin's personal data plus its login account."""

    admin: AdminIn
    user: UserIn


class AdminPatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    address: Optional[str] = Field(default=None, max_length=500)
    name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)


class UserPatch(BaseModel):
    is_active: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=1)


class AdminUpdate(BaseModel):
    """Request body for PUT /admin?id=. Either part may be omitted."""

    admin: AdminPatch = Field(default_factory=AdminPatch)
    user: Optional[UserPatch] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    name: Optional[str] = None
    is_active: bool
    is_admin: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            is_active=user.is_active,
            is_admin=user.is_admin,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AdminResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    address: str
    birth_date: str
    cpf: str
    name: str
    phone: str
    user_id: Optional[int] = None
    user: Optional[UserResponse] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_admin(cls, admin: Admin) -> "AdminResponse":
        return cls(
            id=admin.id,
            address=admin.address,
            birth_date=admin.birth_date,
            cpf=admin.cpf,
            name=admin.name,
            phone=admin.phone,
            user_id=admin.user,
            user=UserResponse.from_user(admin.user_record) if admin.user_record else None,
            created_at=admin.created_at,
            updated_at=admin.updated_at,
        )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class LibraryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1, max_length=500)


class LibraryResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    address: str
    created_at: str = ""
    updated_at: Optional[str] = None

    @classmethod
    def from_library(cls, library: Library) -> "LibraryResponse":
        return cls(
            id=library.id,
            name=library.name,
            address=library.address,
            created_at=library.created_at,
            updated_at=library.updated_at,
        )


class BookCreate(BaseModel):
    """Request body for POST /book. Every cataloguing field is required."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=500)
    author: str = Field(min_length=1, max_length=255)
    publisher: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=255)
    edition: str = Field(min_length=1, max_length=50)
    release_date: date
    copies: int = Field(ge=0)
    available: bool
    cdd: str = Field(min_length=1, max_length=50)
    id_cutter: str = Field(min_length=1, max_length=50)
    tomo: Optional[str] = Field(default=None, max_length=50)
    volume: Optional[str] = Field(default=None, max_length=50)
    library_id: Optional[int] = None


class BookUpdate(BaseModel):
    """Request body for PUT /book/{id}. cdd, id_cutter and library_id are fixed after creation."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    author: Optional[str] = Field(default=None, min_length=1, max_length=255)
    publisher: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=255)
    edition: Optional[str] = Field(default=None, max_length=50)
    release_date: Optional[date] = None
    copies: Optional[int] = Field(default=None, ge=0)
    available: Optional[bool] = None
    tomo: Optional[str] = Field(default=None, max_length=50)
    volume: Optional[str] = Field(default=None, max_length=50)


class BookResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    author: str
    publisher: str
    city: str
    edition: str
    release_date: str
    copies: int
    available: bool
    cdd: str
    id_cutter: str
    tomo: Optional[str] = None
    volume: Optional[str] = None
    library_id: Optional[int] = None
    created_at: str = ""
    updated_at: Optional[str] = None

    @classmethod
    def from_book(cls, book: Book) -> "BookResponse":
        return cls(
            id=book.id,
            title=book.title,
            author=book.author,
            publisher=book.publisher,
            city=book.city,
            edition=book.edition,
            release_date=book.release_date,
            copies=book.copies,
            available=book.available,
            cdd=book.cdd,
            id_cutter=book.id_cutter,
            tomo=book.tomo,
            volume=book.volume,
            library_id=book.library_id,
            created_at=book.created_at,
            updated_at=book.updated_at,
        )
