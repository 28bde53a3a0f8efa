"""
auth/store.py -- SQLAlchemy Core persistence layer for users and admins.

Pattern: Repository + Data Mapper (same as catalog/store.py).
UserStore is the repository; _row_to_user / _row_to_admin are the mappers.
Route and service code never touches SQL directly.

The Auth Module only needs three reads from here -- get_by_email(),
get_by_id() and get_admin_by_user_id(). Everything else backs the /admin
routes and the create-admin CLI command.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Uniqueness (users.email, admins.cpf, admins.user) is enforced by the
  schema; violations surface as sqlalchemy.exc.IntegrityError.

DB URL: any SQLAlchemy URL; defaults to Settings.database_url.

Layer rule: no imports from api/ or catalog/. Engine setup comes from core/db.py.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    LABEL_STYLE_TABLENAME_PLUS_COL,
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    select,
    text,
)
from sqlalchemy.engine import Engine

from auth.models import Admin, User
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(255)),
    Column("password", Text, nullable=False),  # bcrypt hash
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("is_admin", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32)),
)

_admins = Table(
    "admins",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("address", Text, nullable=False),
    Column("birth_date", String(32), nullable=False),
    Column("cpf", String(14), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("phone", String(32), nullable=False),
    Column("user", Integer, ForeignKey("users.id"), nullable=False, unique=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32)),
)

# Fields callers may change through update_user() / update_admin().
_USER_MUTABLE = {"name", "password", "is_active"}
_ADMIN_MUTABLE = {"address", "name", "phone"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User and Admin entities.

    Usage:
        store = UserStore("sqlite:///libraryhub.db")
        uid = store.create_user(User(email="a@x.com", password=hash_password("pw")))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(text("SELECT COUNT(*) FROM users")).scalar()
        return (result or 0) > 0

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        user.password must already be hashed. Raises IntegrityError if the
        email is taken.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=user.email,
                    name=user.name,
                    password=user.password,
                    is_active=1 if user.is_active else 0,
                    is_admin=1 if user.is_admin else 0,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_user(self, user_id: int, **fields) -> bool:
        """Update name, password (already hashed) or is_active.

        None values are skipped. Returns True if a row was updated, False if
        user_id was not found or nothing was left to change.
        """
        unknown = set(fields) - _USER_MUTABLE
        if unknown:
            raise ValueError(f"Unknown user fields: {unknown!r}")
        values = {k: v for k, v in fields.items() if v is not None}
        if not values:
            return False
        if "is_active" in values:
            values["is_active"] = 1 if values["is_active"] else 0
        values["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_user(self, user_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Admin queries
    # ------------------------------------------------------------------

    def create_admin(self, admin: Admin) -> int:
        """Insert an Admin linked to admin.user. Raises IntegrityError on duplicate cpf/user."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _admins.insert().values(
                    address=admin.address,
                    birth_date=admin.birth_date,
                    cpf=admin.cpf,
                    name=admin.name,
                    phone=admin.phone,
                    user=admin.user,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_admin_by_id(self, admin_id: int) -> Admin | None:
        return self._get_admin(_admins.c.id == admin_id)

    def get_admin_by_user_id(self, user_id: int) -> Admin | None:
        """Return the Admin linked to user_id, or None. Used by login for is_admin users."""
        return self._get_admin(_admins.c.user == user_id)

    def get_admin_by_cpf(self, cpf: str) -> Admin | None:
        return self._get_admin(_admins.c.cpf == cpf)

    def find_admins_by_name(self, name: str, is_active: bool = False) -> list[Admin]:
        """Admins whose name contains `name` (SQL LIKE), newest first.

        is_active=True keeps only admins whose linked user is active.
        """
        pattern = f"%{name}%"
        return self._list_admins(_admins.c.name.like(pattern), is_active=is_active)

    def list_admins(self, is_active: bool = False, offset: int | None = None, take: int | None = None) -> list[Admin]:
        """All admins newest first, optionally paginated."""
        return self._list_admins(None, is_active=is_active, offset=offset, take=take)

    def update_admin(self, admin_id: int, **fields) -> bool:
        """Update address, name or phone. cpf, birth_date and the user link are fixed."""
        unknown = set(fields) - _ADMIN_MUTABLE
        if unknown:
            raise ValueError(f"Unknown admin fields: {unknown!r}")
        values = {k: v for k, v in fields.items() if v is not None}
        if not values:
            return False
        values["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_admins.update().where(_admins.c.id == admin_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_admin(self, admin_id: int) -> bool:
        """Delete the Admin row only. The linked User is left in place."""
        with self.engine.connect() as conn:
            result = conn.execute(_admins.delete().where(_admins.c.id == admin_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _admin_select(self):
        # Outer join so an Admin whose User row vanished is still returned.
        # Columns come back labelled "<table>_<column>".
        return (
            select(_admins, _users)
            .select_from(_admins.outerjoin(_users, _admins.c.user == _users.c.id))
            .set_label_style(LABEL_STYLE_TABLENAME_PLUS_COL)
        )

    def _get_admin(self, condition) -> Admin | None:
        with self.engine.connect() as conn:
            row = conn.execute(self._admin_select().where(condition)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def _list_admins(self, condition, is_active: bool = False, offset: int | None = None, take: int | None = None):
        stmt = self._admin_select()
        if condition is not None:
            stmt = stmt.where(condition)
        if is_active:
            stmt = stmt.where(_users.c.is_active == 1)
        stmt = stmt.order_by(_admins.c.created_at.desc(), _admins.c.id.desc())
        if offset:
            stmt = stmt.offset(offset)
        if take:
            stmt = stmt.limit(take)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_admin(r) for r in rows]


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name,
        password=row.password,
        is_active=bool(row.is_active),
        is_admin=bool(row.is_admin),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_admin(row) -> Admin:
    m = row._mapping
    user_record = None
    if m["users_id"] is not None:
        user_record = User(
            id=m["users_id"],
            email=m["users_email"],
            name=m["users_name"],
            password=m["users_password"],
            is_active=bool(m["users_is_active"]),
            is_admin=bool(m["users_is_admin"]),
            created_at=m["users_created_at"],
            updated_at=m["users_updated_at"],
        )
    return Admin(
        id=m["admins_id"],
        address=m["admins_address"],
        birth_date=m["admins_birth_date"],
        cpf=m["admins_cpf"],
        name=m["admins_name"],
        phone=m["admins_phone"],
        user=m["admins_user"],
        created_at=m["admins_created_at"],
        updated_at=m["admins_updated_at"],
        user_record=user_record,
    )
