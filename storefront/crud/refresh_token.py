# storefront/crud/refresh_token.py
"""
Store de refresh tokens.

Estados: Active -> Expired (só pelo tempo) | Revoked (terminal).
Toda transição é um UPDATE condicional (compare-and-set no próprio WHERE),
nunca "lê e depois grava": duas rotações concorrentes do mesmo token
resultam em exatamente um UPDATE com rowcount == 1.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.core.errors import InvalidRefreshToken
from storefront.core.tokens import utcnow
from storefront.crud.base import CRUDBase
from storefront.models.refresh_token import RefreshToken

SYSTEM_IP = "system"


class CRUDRefreshToken(CRUDBase[RefreshToken]):
    def create_for_user(
        self,
        db: Session,
        *,
        user_id: int,
        token: str,
        expires_at: datetime,
        ip: Optional[str],
        now: Optional[datetime] = None,
    ) -> RefreshToken:
        row = RefreshToken(
            user_id=user_id,
            token=token,
            expires_at=expires_at,
            is_revoked=False,
            created_at=now or utcnow(),
            created_by_ip=ip,
        )
        return self.add(db, row)

    def get_by_token(self, db: Session, token: str) -> Optional[RefreshToken]:
        return db.execute(select(RefreshToken).where(RefreshToken.token == token)).scalar_one_or_none()

    def _active(self, now: datetime):
        return (RefreshToken.is_revoked.is_(False), RefreshToken.expires_at > now)

    def rotate(
        self,
        db: Session,
        *,
        presented: str,
        user_id: int,
        new_token: str,
        new_expires_at: datetime,
        ip: Optional[str],
        now: Optional[datetime] = None,
    ) -> RefreshToken:
        """
        Revoga `presented` (se Active e do `user_id`) encadeando `new_token`,
        e cria o novo registro, tudo na mesma transação.
        """
        now = now or utcnow()
        try:
            result = db.execute(
                update(RefreshToken)
                .where(
                    RefreshToken.token == presented,
                    RefreshToken.user_id == user_id,
                    *self._active(now),
                )
                .values(
                    is_revoked=True,
                    revoked_at=now,
                    revoked_by_ip=ip,
                    replaced_by_token=new_token,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                raise InvalidRefreshToken("Invalid refresh token")

            new_row = RefreshToken(
                user_id=user_id,
                token=new_token,
                expires_at=new_expires_at,
                is_revoked=False,
                created_at=now,
                created_by_ip=ip,
            )
            db.add(new_row)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(new_row)
        return new_row

    def revoke(
        self,
        db: Session,
        *,
        token: str,
        user_id: int,
        ip: Optional[str],
        now: Optional[datetime] = None,
    ) -> bool:
        now = now or utcnow()
        try:
            result = db.execute(
                update(RefreshToken)
                .where(RefreshToken.token == token, RefreshToken.user_id == user_id, *self._active(now))
                .values(is_revoked=True, revoked_at=now, revoked_by_ip=ip)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        return result.rowcount == 1

    def revoke_all_for_user(self, db: Session, *, user_id: int, ip: Optional[str], now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        try:
            result = db.execute(
                update(RefreshToken)
                .where(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
                .values(is_revoked=True, revoked_at=now, revoked_by_ip=ip)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        return result.rowcount or 0

    def revoke_descendants(self, db: Session, row: RefreshToken, now: Optional[datetime] = None) -> int:
        """
        Segue a cadeia replaced_by_token revogando cada descendente ainda não revogado.

        Cada elo é um UPDATE condicional; o próximo elo é lido depois do UPDATE,
        então uma rotação que já foi gravada no elo atual também é alcançada.
        """
        now = now or utcnow()
        revoked = 0
        seen = {row.token}
        next_token = row.replaced_by_token
        try:
            while next_token and next_token not in seen:
                seen.add(next_token)
                result = db.execute(
                    update(RefreshToken)
                    .where(RefreshToken.token == next_token, RefreshToken.is_revoked.is_(False))
                    .values(is_revoked=True, revoked_at=now, revoked_by_ip=SYSTEM_IP)
                    .execution_options(synchronize_session=False)
                )
                revoked += result.rowcount or 0
                next_token = db.execute(
                    select(RefreshToken.replaced_by_token).where(RefreshToken.token == next_token)
                ).scalar_one_or_none()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        return revoked

    def page_for_user(self, db: Session, user_id: int, skip: int, take: int) -> Tuple[List[RefreshToken], int]:
        return self.get_page(db, skip, take, RefreshToken.user_id == user_id)


refresh_token_crud = CRUDRefreshToken(RefreshToken)
