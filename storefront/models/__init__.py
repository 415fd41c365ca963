# storefront/models/__init__.py
from storefront.models.user import User, UserRole
from storefront.models.refresh_token import RefreshToken

__all__ = ["User", "UserRole", "RefreshToken"]
