# storefront/schemas/token.py
from datetime import datetime
from pydantic import BaseModel, Field

from storefront.models.user import UserRole
from storefront.schemas.user import UserOut


class TokenClaims(BaseModel):
    user_id: int
    email: str
    role: UserRole
    username: str
    jti: str
    iat: int
    exp: int


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: datetime


class AuthResponse(TokenPair):
    user: UserOut


class RefreshRequest(BaseModel):
    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)


class RevokeRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class SessionOut(BaseModel):
    """Registro de refresh token sem o valor do token."""

    id: int
    created_at: datetime
    created_by_ip: str | None = None
    expires_at: datetime
    is_revoked: bool
    revoked_at: datetime | None = None
    revoked_by_ip: str | None = None
    is_active: bool

    model_config = {"from_attributes": True}
