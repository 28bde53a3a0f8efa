"""
catalog/store.py -- SQLAlchemy Core persistence layer for libraries and books.

Pattern: Repository + Data Mapper (same as auth/store.py).
CatalogStore is the repository; _row_to_library / _row_to_book are the mappers.

Ordering:
  list_libraries() -- name ascending
  list_books()     -- title ascending
Both accept offset/take for pagination; a falsy value means "no limit".

Security:
  All queries use bound parameters. update_book() only accepts the columns in
  _BOOK_MUTABLE, so call numbers (cdd, id_cutter) and the owning library
  cannot be rewritten through the API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from catalog.models import Book, Library
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_libraries = Table(
    "libraries",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("address", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32)),
)

_books = Table(
    "books",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(500), nullable=False),
    Column("author", String(255), nullable=False),
    Column("publisher", String(255), nullable=False),
    Column("city", String(255), nullable=False),
    Column("edition", String(50), nullable=False),
    Column("release_date", String(32), nullable=False),
    Column("copies", Integer, nullable=False, server_default="1"),
    Column("available", Integer, nullable=False, server_default="1"),
    Column("cdd", String(50), nullable=False),
    Column("id_cutter", String(50), nullable=False),
    Column("tomo", String(50)),
    Column("volume", String(50)),
    Column("library_id", Integer, ForeignKey("libraries.id")),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32)),
)

_BOOK_MUTABLE = {
    "title",
    "author",
    "publisher",
    "city",
    "edition",
    "release_date",
    "copies",
    "available",
    "tomo",
    "volume",
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CatalogStore:
    """Repository for Library and Book entities.

    Usage:
        store = CatalogStore("sqlite:///libraryhub.db")
        lib_id = store.create_library(Library(name="Central", address="Main St 1"))
        store.list_books(offset=0, take=20)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Libraries
    # ------------------------------------------------------------------

    def create_library(self, library: Library) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                _libraries.insert().values(name=library.name, address=library.address, created_at=_now_iso())
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_library(self, library_id: int) -> Optional[Library]:
        with self.engine.connect() as conn:
            row = conn.execute(_libraries.select().where(_libraries.c.id == library_id)).fetchone()
        return _row_to_library(row) if row is not None else None

    def list_libraries(self, offset: Optional[int] = None, take: Optional[int] = None) -> list[Library]:
        stmt = _libraries.select().order_by(_libraries.c.name.asc())
        if offset:
            stmt = stmt.offset(offset)
        if take:
            stmt = stmt.limit(take)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_library(r) for r in rows]

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------

    def create_book(self, book: Book) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(
                _books.insert().values(
                    title=book.title,
                    author=book.author,
                    publisher=book.publisher,
                    city=book.city,
                    edition=book.edition,
                    release_date=book.release_date,
                    copies=book.copies,
                    available=1 if book.available else 0,
                    cdd=book.cdd,
                    id_cutter=book.id_cutter,
                    tomo=book.tomo,
                    volume=book.volume,
                    library_id=book.library_id,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_book(self, book_id: int) -> Optional[Book]:
        with self.engine.connect() as conn:
            row = conn.execute(_books.select().where(_books.c.id == book_id)).fetchone()
        return _row_to_book(row) if row is not None else None

    def get_book_by_title(self, title: str) -> Optional[Book]:
        """Return the first book with exactly this title, or None."""
        with self.engine.connect() as conn:
            row = conn.execute(_books.select().where(_books.c.title == title).order_by(_books.c.id)).fetchone()
        return _row_to_book(row) if row is not None else None

    def list_books(self, offset: Optional[int] = None, take: Optional[int] = None) -> list[Book]:
        stmt = _books.select().order_by(_books.c.title.asc(), _books.c.id.asc())
        if offset:
            stmt = stmt.offset(offset)
        if take:
            stmt = stmt.limit(take)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_book(r) for r in rows]

    def update_book(self, book_id: int, **fields) -> bool:
        """Update mutable book columns. None values are skipped.

        Returns True if a row was updated, False if not found or nothing to change.
        Raises ValueError for columns outside _BOOK_MUTABLE.
        """
        unknown = set(fields) - _BOOK_MUTABLE
        if unknown:
            raise ValueError(f"Unknown or immutable book fields: {unknown!r}")
        values = {k: v for k, v in fields.items() if v is not None}
        if not values:
            return False
        if "available" in values:
            values["available"] = 1 if values["available"] else 0
        values["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_books.update().where(_books.c.id == book_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_book(self, book_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_books.delete().where(_books.c.id == book_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_library(row) -> Library:
    return Library(
        id=row.id,
        name=row.name,
        address=row.address,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_book(row) -> Book:
    return Book(
        id=row.id,
        title=row.title,
        author=row.author,
        publisher=row.publisher,
        city=row.city,
        edition=row.edition,
        release_date=row.release_date,
        copies=row.copies,
        available=bool(row.available),
        cdd=row.cdd,
        id_cutter=row.id_cutter,
        tomo=row.tomo,
        volume=row.volume,
        library_id=row.library_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
