from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from storefront.core.config import JwtConfig, settings
from storefront.core.errors import InvalidToken
from storefront.core.tokens import TokenService
from storefront.db.session import get_db
from storefront.models.user import User
from storefront.services.auth import AuthService

# ----------------------------------------------------------------------
# Lê o Bearer do header Authorization (sem usar OAuth2PasswordBearer)
# ----------------------------------------------------------------------
def get_bearer_token(authorization: str = Header(None, alias="Authorization")) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header",
                            headers={"WWW-Authenticate": "Bearer"})
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Authorization header",
                            headers={"WWW-Authenticate": "Bearer"})
    return parts[1]

# ----------------------------------------------------------------------
# TokenService único, montado a partir da configuração explícita
# ----------------------------------------------------------------------
@lru_cache(maxsize=1)
def build_token_service() -> TokenService:
    return TokenService(JwtConfig.from_settings(settings))

def get_token_service() -> TokenService:
    return build_token_service()

def get_auth_service(
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, tokens, revoke_chain_on_reuse=settings.REVOKE_CHAIN_ON_REUSE)

def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()[:50] or None
    return request.client.host if request.client else None

# ----------------------------------------------------------------------
# Usuário atual: só validação completa (com expiração) autoriza request
# ----------------------------------------------------------------------
def get_current_user(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> User:
    claims = tokens.validate_access_token(token)
    user = db.get(User, claims.user_id)
    if not user or not user.is_active:
        raise InvalidToken("Invalid token")
    return user
