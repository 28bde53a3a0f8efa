"""
api/routes/v1/libraries.py -- Library routes.

Routes:
  GET  /library   -- ?id= single library, else list ordered by name
  POST /library   -- create (admin token)
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from api.models import LibraryCreate, LibraryResponse
from auth.dependencies import require_admin_token, verify_jwt
from catalog.models import Library
from catalog.store import CatalogStore

router = APIRouter()


@router.get(
    "/library",
    response_model=Union[LibraryResponse, list[LibraryResponse]],
    dependencies=[Depends(verify_jwt)],
)
def get_libraries(
    request: Request,
    id: Optional[int] = None,
    offset: Optional[int] = Query(default=None, ge=0),
    take: Optional[int] = Query(default=None, ge=1),
):
    catalog: CatalogStore = request.app.state.catalog
    if id is not None:
        library = catalog.get_library(id)
        if library is None:
            raise HTTPException(status_code=404, detail={"code": "not_found", "message": "Library not found"})
        return LibraryResponse.from_library(library)

    libraries = catalog.list_libraries(offset=offset, take=take)
    if not libraries:
        return Response(status_code=204)
    return [LibraryResponse.from_library(lib) for lib in libraries]


@router.post("/library", status_code=201, response_model=LibraryResponse, dependencies=[Depends(require_admin_token)])
def create_library(request: Request, body: LibraryCreate) -> LibraryResponse:
    catalog: CatalogStore = request.app.state.catalog
    library_id = catalog.create_library(Library(name=body.name, address=body.address))
    return LibraryResponse.from_library(catalog.get_library(library_id))
