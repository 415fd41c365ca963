# storefront/services/auth.py
"""
Ciclo de vida da sessão: par access/refresh, rotação, revogação.

O refresh é tudo-ou-nada: qualquer falha vira InvalidRefreshToken e
nenhum token novo sai daqui.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from storefront.core.errors import InvalidRefreshToken, InvalidToken
from storefront.core.pagination import normalize
from storefront.core.tokens import TokenService
from storefront.crud.refresh_token import refresh_token_crud
from storefront.crud.user import user_crud
from storefront.models.refresh_token import RefreshToken
from storefront.models.user import User
from storefront.schemas.token import TokenPair

log = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session, tokens: TokenService, revoke_chain_on_reuse: bool = True):
        self.db = db
        self.tokens = tokens
        self.revoke_chain_on_reuse = revoke_chain_on_reuse

    def _access_token_for(self, user: User) -> str:
        return self.tokens.issue_access_token(user.id, user.email, user.role, user.username)

    def issue_pair(self, user: User, ip: Optional[str]) -> TokenPair:
        """Login/registro: novo refresh Active + access token."""
        row = refresh_token_crud.create_for_user(
            self.db,
            user_id=user.id,
            token=self.tokens.issue_refresh_token(),
            expires_at=self.tokens.refresh_token_expires_at(),
            ip=ip,
            now=self.tokens.now(),
        )
        return TokenPair(
            access_token=self._access_token_for(user),
            refresh_token=row.token,
            expires_at=self.tokens.access_token_expires_at(),
        )

    def refresh(self, expired_access_token: str, refresh_token: str, ip: Optional[str]) -> Tuple[User, TokenPair]:
        try:
            claims = self.tokens.extract_claims_ignoring_expiry(expired_access_token)
        except InvalidToken as exc:
            raise InvalidRefreshToken("Invalid refresh token") from exc

        user = user_crud.get(self.db, claims.user_id)
        if user is None or not user.is_active:
            raise InvalidRefreshToken("Invalid refresh token")

        try:
            row = refresh_token_crud.rotate(
                self.db,
                presented=refresh_token,
                user_id=user.id,
                new_token=self.tokens.issue_refresh_token(),
                new_expires_at=self.tokens.refresh_token_expires_at(),
                ip=ip,
                now=self.tokens.now(),
            )
        except InvalidRefreshToken:
            self._on_refused(refresh_token, user.id)
            raise

        log.info("refresh token rotated", extra={"user_id": user.id, "ip": ip})
        pair = TokenPair(
            access_token=self._access_token_for(user),
            refresh_token=row.token,
            expires_at=self.tokens.access_token_expires_at(),
        )
        return user, pair

    def _on_refused(self, presented: str, user_id: int) -> None:
        existing = refresh_token_crud.get_by_token(self.db, presented)
        if existing is None or not existing.is_revoked:
            log.info("refresh refused", extra={"user_id": user_id})
            return
        # token já revogado sendo reapresentado: possível vazamento
        log.warning(
            "revoked refresh token reused",
            extra={"user_id": user_id, "owner_id": existing.user_id},
        )
        if self.revoke_chain_on_reuse:
            n = refresh_token_crud.revoke_descendants(self.db, existing, now=self.tokens.now())
            log.warning("refresh token chain revoked", extra={"owner_id": existing.user_id, "revoked": n})

    def revoke(self, refresh_token: str, user_id: int, ip: Optional[str]) -> bool:
        ok = refresh_token_crud.revoke(self.db, token=refresh_token, user_id=user_id, ip=ip, now=self.tokens.now())
        log.info("refresh token revoke", extra={"user_id": user_id, "revoked": ok})
        return ok

    def logout(self, user_id: int, ip: Optional[str]) -> int:
        n = refresh_token_crud.revoke_all_for_user(self.db, user_id=user_id, ip=ip, now=self.tokens.now())
        log.info("logout", extra={"user_id": user_id, "revoked": n})
        return n

    def change_password(self, user: User, new_password: str, ip: Optional[str]) -> int:
        """Troca a senha e revoga todas as sessões: o usuário precisa logar de novo."""
        user_crud.set_password(self.db, user, new_password)
        n = refresh_token_crud.revoke_all_for_user(self.db, user_id=user.id, ip=ip, now=self.tokens.now())
        log.info("password changed", extra={"user_id": user.id, "revoked": n})
        return n

    def sessions(self, user_id: int, page: int, page_size: int) -> Tuple[List[RefreshToken], int]:
        skip, take = normalize(page, page_size)
        return refresh_token_crud.page_for_user(self.db, user_id, skip, take)
