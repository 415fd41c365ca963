# storefront/api/permissions.py
from typing import Callable, Iterable
from fastapi import Depends, HTTPException, status
from storefront.api.deps import get_current_user
from storefront.models.user import User, UserRole

# Ordem lógica (menor privilégio): CUSTOMER < STAFF < ADMIN
_HIERARCHY = [UserRole.CUSTOMER, UserRole.STAFF, UserRole.ADMIN]
_RANK = {r: idx for idx, r in enumerate(_HIERARCHY)}

def _role_of(user: User) -> UserRole | None:
    try:
        return UserRole(user.role)
    except ValueError:
        return None

def require_roles(allowed: Iterable[UserRole]) -> Callable[[User], User]:
    """
    Use: Depends(require_roles([UserRole.ADMIN, UserRole.STAFF]))
    Bloqueia quem não tiver uma das roles permitidas.
    """
    allowed_set = set(allowed)

    def _checker(user: User = Depends(get_current_user)) -> User:
        if _role_of(user) not in allowed_set:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied for role '{user.role}'.",
            )
        return user

    return _checker

def require_role_at_least(min_role: UserRole) -> Callable[[User], User]:
    """
    Use: Depends(require_role_at_least(UserRole.STAFF))
    Permite min_role e superiores na hierarquia.
    """
    def _checker(user: User = Depends(get_current_user)) -> User:
        role = _role_of(user)
        if role is None or _RANK[role] < _RANK[min_role]:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires at least role '{min_role.value}'.",
            )
        return user

    return _checker
