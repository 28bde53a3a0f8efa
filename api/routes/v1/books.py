"""
api/routes/v1/books.py -- Book catalog routes.

Routes:
  GET    /book            -- ?id= single book, else list (offset, take)
  POST   /book            -- create (admin token)
  PUT    /book/{book_id}  -- update mutable fields (admin token)
  DELETE /book/{book_id}  -- delete (admin token)

Reads need any valid token (verify_jwt). Writes need a token whose isAdmin
claim is true (require_admin_token); a non-admin token gets 403.
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from api.models import BookCreate, BookResponse, BookUpdate
from auth.dependencies import require_admin_token, verify_jwt
from catalog.models import Book
from catalog.store import CatalogStore

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": "Book not found"})


@router.get(
    "/book",
    response_model=Union[BookResponse, list[BookResponse]],
    dependencies=[Depends(verify_jwt)],
)
def get_books(
    request: Request,
    id: Optional[int] = None,
    offset: Optional[int] = Query(default=None, ge=0),
    take: Optional[int] = Query(default=None, ge=1),
):
    catalog: CatalogStore = request.app.state.catalog
    if id is not None:
        book = catalog.get_book(id)
        if book is None:
            raise _not_found()
        return BookResponse.from_book(book)

    books = catalog.list_books(offset=offset, take=take)
    if not books:
        return Response(status_code=204)
    return [BookResponse.from_book(b) for b in books]


@router.post("/book", status_code=201, response_model=BookResponse, dependencies=[Depends(require_admin_token)])
def create_book(request: Request, body: BookCreate) -> BookResponse:
    catalog: CatalogStore = request.app.state.catalog
    if body.library_id is not None and catalog.get_library(body.library_id) is None:
        raise HTTPException(
            status_code=400,
            detail={"code": "unknown_library", "message": f"Library {body.library_id} does not exist."},
        )
    book_id = catalog.create_book(
        Book(
            title=body.title,
            author=body.author,
            publisher=body.publisher,
            city=body.city,
            edition=body.edition,
            release_date=body.release_date.isoformat(),
            copies=body.copies,
            available=body.available,
            cdd=body.cdd,
            id_cutter=body.id_cutter,
            tomo=body.tomo,
            volume=body.volume,
            library_id=body.library_id,
        )
    )
    return BookResponse.from_book(catalog.get_book(book_id))


@router.put("/book/{book_id}", response_model=BookResponse, dependencies=[Depends(require_admin_token)])
def update_book(request: Request, book_id: int, body: BookUpdate) -> BookResponse:
    catalog: CatalogStore = request.app.state.catalog
    if catalog.get_book(book_id) is None:
        raise _not_found()
    fields = body.model_dump()
    if fields["release_date"] is not None:
        fields["release_date"] = fields["release_date"].isoformat()
    catalog.update_book(book_id, **fields)
    return BookResponse.from_book(catalog.get_book(book_id))


@router.delete("/book/{book_id}", status_code=204, dependencies=[Depends(require_admin_token)])
def delete_book(request: Request, book_id: int) -> Response:
    catalog: CatalogStore = request.app.state.catalog
    if catalog.get_book(book_id) is None:
        raise _not_found()
    catalog.delete_book(book_id)
    return Response(status_code=204)
