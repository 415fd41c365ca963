# storefront/db/init_db.py
import logging

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.crud.user import normalize_email, user_crud
from storefront.core.security_password import hash_password
from storefront.models.user import User, UserRole

log = logging.getLogger(__name__)

def init_db(db: Session, email: str | None = None, password: str | None = None) -> User | None:
    """Cria o admin inicial se ADMIN_EMAIL/ADMIN_PASSWORD estiverem definidos."""
    email = normalize_email(email if email is not None else settings.ADMIN_EMAIL)
    password = password if password is not None else settings.ADMIN_PASSWORD
    if not email or not password:
        return None

    admin = user_crud.get_by_email(db, email)
    if admin:
        return admin

    admin = User(
        username="admin",
        email=email,
        hashed_password=hash_password(password),
        full_name="Administrator",
        role=UserRole.ADMIN.value,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    log.info("admin user seeded", extra={"user_id": admin.id})
    return admin
