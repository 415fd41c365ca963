# storefront/api/v1/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from storefront.api.deps import client_ip, get_auth_service, get_current_user, get_db
from storefront.core.pagination import build_link_header, create_paged_result
from storefront.core.security_password import verify_and_maybe_upgrade
from storefront.crud.user import user_crud
from storefront.models.user import User
from storefront.schemas.common import PagedResult
from storefront.schemas.token import AuthResponse, RefreshRequest, RevokeRequest, SessionOut
from storefront.schemas.user import ChangePasswordRequest, LoginRequest, UserCreate, UserOut
from storefront.services.auth import AuthService

log = logging.getLogger(__name__)

router = APIRouter()

# ---------- helpers ----------
def _auth_response(user: User, pair) -> AuthResponse:
    return AuthResponse(**pair.model_dump(), user=UserOut.model_validate(user))

# ---------- endpoints ----------
@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    taken = user_crud.exists(db, body.email, body.username)
    if taken == "email":
        raise HTTPException(status_code=409, detail="Email already exists")
    if taken == "username":
        raise HTTPException(status_code=409, detail="Username already exists")

    user = user_crud.create(db, body)
    log.info("user registered", extra={"user_id": user.id})
    return _auth_response(user, auth.issue_pair(user, client_ip(request)))

@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
):
    user = user_crud.get_by_email(db, body.email)
    if not user:
        log.info("login failed")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    ok, new_hash = verify_and_maybe_upgrade(body.password, user.hashed_password)
    if not ok:
        log.info("login failed", extra={"user_id": user.id})
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account is deactivated. Please contact support.")
    if new_hash:
        user.hashed_password = new_hash

    user = user_crud.touch_last_login(db, user)
    log.info("login ok", extra={"user_id": user.id})
    return _auth_response(user, auth.issue_pair(user, client_ip(request)))

@router.post("/refresh-token", response_model=AuthResponse)
def refresh_token(
    body: RefreshRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
):
    # InvalidRefreshToken -> 401 pelo handler em main.py
    user, pair = auth.refresh(body.access_token, body.refresh_token, client_ip(request))
    return _auth_response(user, pair)

@router.post("/revoke-token")
def revoke_token(
    body: RevokeRequest,
    request: Request,
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    if not auth.revoke(body.refresh_token, user.id, client_ip(request)):
        raise HTTPException(status_code=400, detail="Token not found or already inactive")
    return {"ok": True}

@router.post("/logout")
def logout(
    request: Request,
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    revoked = auth.logout(user.id, client_ip(request))
    return {"ok": True, "revoked": revoked}

@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    ok, _ = verify_and_maybe_upgrade(body.current_password, user.hashed_password)
    if not ok:
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    revoked = auth.change_password(user, body.new_password, client_ip(request))
    return {"ok": True, "revoked": revoked}

@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user

@router.get("/sessions", response_model=PagedResult[SessionOut])
def list_sessions(
    request: Request,
    response: Response,
    page: int = Query(1),
    page_size: int = Query(10, alias="pageSize"),
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    rows, total = auth.sessions(user.id, page, page_size)
    result = create_paged_result([SessionOut.model_validate(r) for r in rows], total, page, page_size)
    response.headers["X-Total-Count"] = str(total)
    link = build_link_header(result.page, result.page_size, total, str(request.url.path))
    if link:
        response.headers["Link"] = link
    return result
