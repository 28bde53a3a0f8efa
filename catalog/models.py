"""
catalog/models.py -- Domain dataclasses for the library catalog.

These are pure data containers with zero logic. Persistence lives in
catalog/store.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Library:
    """A physical library that holds books. id is None before insert."""

    name: str
    address: str
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: Optional[str] = None


@dataclass
class Book:
    """A catalogued title held by a library.

    cdd is the Dewey decimal classification and id_cutter the Cutter-Sanborn
    author mark; together they form the shelf call number and never change
    after cataloguing.

    copies is the number of physical copies; available says whether at least
    one can be lent right now.
    """

    title: str
    author: str
    publisher: str
    city: str
    edition: str
    release_date: str  # ISO 8601 date
    copies: int
    available: bool
    cdd: str
    id_cutter: str
    tomo: Optional[str] = None
    volume: Optional[str] = None
    library_id: Optional[int] = None
    id: Optional[int] = None
    created_at: str = ""
    updated_at: Optional[str] = None
