# storefront/api/v1/users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, Response
from sqlalchemy.orm import Session

from storefront.api.deps import client_ip, get_auth_service, get_db
from storefront.api.permissions import require_role_at_least, require_roles
from storefront.core.pagination import build_link_header, create_paged_result, normalize
from storefront.crud.user import user_crud
from storefront.models.user import UserRole
from storefront.schemas.common import PagedResult
from storefront.schemas.user import UserOut
from storefront.services.auth import AuthService

router = APIRouter()

@router.get("/", response_model=PagedResult[UserOut],
            dependencies=[Depends(require_role_at_least(UserRole.STAFF))])
def list_users(
    request: Request,
    response: Response,
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    db: Session = Depends(get_db),
):
    skip, take = normalize(page, page_size)
    rows, total = user_crud.get_page(db, skip, take)
    result = create_paged_result([UserOut.model_validate(u) for u in rows], total, page, page_size)
    response.headers["X-Total-Count"] = str(total)
    link = build_link_header(result.page, result.page_size, total, str(request.url.path))
    if link:
        response.headers["Link"] = link
    return result

@router.post("/{user_id}/revoke-sessions",
             dependencies=[Depends(require_roles([UserRole.ADMIN]))])
def revoke_user_sessions(
    request: Request,
    user_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    if user_crud.get(db, user_id) is None:
        raise HTTPException(404, "User not found")
    return {"ok": True, "revoked": auth.logout(user_id, client_ip(request))}
