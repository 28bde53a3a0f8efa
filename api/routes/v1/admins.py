"""
api/routes/v1/admins.py -- Admin account management.

Routes:
  POST   /admin           -- create user + admin record          (permission gate)
  GET    /admin           -- lookup / list                       (verify_jwt)
  PUT    /admin?id=       -- update admin and its linked user    (permission gate)
  DELETE /admin?id=       -- delete admin record                 (permission gate)

GET /admin dispatches on the first query key present, in this order:
  cpf    -> single admin by CPF
  id     -> single admin by id
  name   -> admins whose name contains the value (isActive filter honoured)
  userId -> admin linked to a user id
  (none) -> paginated list (isActive, offset, take)
List results that come back empty answer 204 with no body.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.exc import IntegrityError

from api.models import AdminCreate, AdminResponse, AdminUpdate
from auth.dependencies import get_auth_service, permission_middleware, verify_jwt
from auth.models import Admin, User
from auth.service import AuthService
from auth.store import UserStore

logger = logging.getLogger("libraryhub.api")

router = APIRouter()


def _not_found(message: str = "Admin not found") -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "not_found", "message": message})


def _user_store(request: Request) -> UserStore:
    return request.app.state.user_store


# ---------------------------------------------------------------------------
# POST /admin
# ---------------------------------------------------------------------------


@router.post("/admin", status_code=201, response_model=AdminResponse, dependencies=[Depends(permission_middleware())])
def create_admin(
    request: Request,
    body: AdminCreate,
    auth: AuthService = Depends(get_auth_service),
) -> AdminResponse:
    """Create the login account and the admin record in one call.

    409 if the email or the CPF is already registered. The password is
    hashed here; the plaintext never reaches the store.
    """
    store = _user_store(request)

    if store.get_by_email(body.user.email):
        raise HTTPException(status_code=409, detail={"code": "conflict", "message": "User email already registered"})
    if store.get_admin_by_cpf(body.admin.cpf):
        raise HTTPException(status_code=409, detail={"code": "conflict", "message": "Admin CPF already registered"})

    try:
        user_id = store.create_user(
            User(
                email=body.user.email,
                password=auth.hash_password(body.user.password),
                name=body.user.name,
                is_active=body.user.is_active,
                is_admin=body.user.is_admin,
            )
        )
        admin_id = store.create_admin(
            Admin(
                address=body.admin.address,
                birth_date=body.admin.birth_date.isoformat(),
                cpf=body.admin.cpf,
                name=body.admin.name,
                phone=body.admin.phone,
                user=user_id,
            )
        )
    except IntegrityError as exc:
        # A concurrent request registered the same email/CPF between the checks and the insert.
        raise HTTPException(
            status_code=409, detail={"code": "conflict", "message": "Email or CPF already registered"}
        ) from exc

    logger.info("admin %s created for user %s", admin_id, user_id)
    return AdminResponse.from_admin(store.get_admin_by_id(admin_id))


# ---------------------------------------------------------------------------
# GET /admin
# ---------------------------------------------------------------------------


@router.get(
    "/admin",
    response_model=Union[AdminResponse, list[AdminResponse]],
    dependencies=[Depends(verify_jwt)],
)
def get_admins(
    request: Request,
    cpf: Optional[str] = None,
    id: Optional[int] = None,
    name: Optional[str] = None,
    user_id: Optional[int] = Query(default=None, alias="userId"),
    is_active: bool = Query(default=False, alias="isActive"),
    offset: Optional[int] = Query(default=None, ge=0),
    take: Optional[int] = Query(default=None, ge=1),
):
    store = _user_store(request)

    if cpf is not None:
        admin = store.get_admin_by_cpf(cpf)
        if admin is None:
            raise _not_found()
        return AdminResponse.from_admin(admin)

    if id is not None:
        admin = store.get_admin_by_id(id)
        if admin is None:
            raise _not_found()
        return AdminResponse.from_admin(admin)

    if name is not None:
        admins = store.find_admins_by_name(name, is_active=is_active)
    elif user_id is not None:
        admin = store.get_admin_by_user_id(user_id)
        if admin is None:
            raise _not_found("Admin not found for this user")
        return AdminResponse.from_admin(admin)
    else:
        admins = store.list_admins(is_active=is_active, offset=offset, take=take)

    if not admins:
        return Response(status_code=204)
    return [AdminResponse.from_admin(a) for a in admins]


# ---------------------------------------------------------------------------
# PUT /admin?id=
# ---------------------------------------------------------------------------


@router.put("/admin", response_model=AdminResponse, dependencies=[Depends(permission_middleware())])
def update_admin(
    request: Request,
    body: AdminUpdate,
    id: int,
    auth: AuthService = Depends(get_auth_service),
) -> AdminResponse:
    """Update address/name/phone and, when given, the linked user's status or password."""
    store = _user_store(request)
    existing = store.get_admin_by_id(id)
    if existing is None:
        raise _not_found()

    store.update_admin(id, **body.admin.model_dump())

    if body.user is not None and existing.user_record is not None:
        password = auth.hash_password(body.user.password) if body.user.password else None
        store.update_user(existing.user_record.id, is_active=body.user.is_active, password=password)

    return AdminResponse.from_admin(store.get_admin_by_id(id))


# ---------------------------------------------------------------------------
# DELETE /admin?id=
# ---------------------------------------------------------------------------


@router.delete("/admin", status_code=204, dependencies=[Depends(permission_middleware())])
def delete_admin(request: Request, id: int) -> Response:
    store = _user_store(request)
    if store.get_admin_by_id(id) is None:
        raise _not_found()
    store.delete_admin(id)
    logger.info("admin %s deleted", id)
    return Response(status_code=204)
