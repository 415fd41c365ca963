from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy import select, or_

from storefront.crud.base import CRUDBase
from storefront.models.user import User, UserRole
from storefront.schemas.user import UserCreate
from storefront.core.security_password import hash_password


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class CRUDUser(CRUDBase[User]):
    def create(self, db: Session, obj_in: UserCreate, role: UserRole = UserRole.CUSTOMER) -> User:
        data = obj_in.model_dump()
        data["email"] = normalize_email(data["email"])
        data["hashed_password"] = hash_password(data.pop("password"))
        user = User(**data, role=role.value, is_active=True)
        return self.add(db, user)

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()

    def exists(self, db: Session, email: str, username: str) -> Optional[str]:
        """Retorna qual campo já está em uso ("email"/"username") ou None."""
        row = db.execute(
            select(User.email, User.username).where(
                or_(User.email == normalize_email(email), User.username == username)
            ).limit(1)
        ).first()
        if not row:
            return None
        return "email" if row.email == normalize_email(email) else "username"

    def touch_last_login(self, db: Session, user: User) -> User:
        user.last_login = datetime.now(timezone.utc)
        return self.add(db, user)

    def set_password(self, db: Session, user: User, password: str) -> User:
        user.hashed_password = hash_password(password)
        return self.add(db, user)

user_crud = CRUDUser(User)
