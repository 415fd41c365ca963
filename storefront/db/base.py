# storefront/db/base.py
from storefront.db.base_class import Base

# IMPORTE TODOS OS MODELS AQUI (registra as tabelas no metadata / Alembic)
from storefront.models.user import User  # noqa: F401
from storefront.models.refresh_token import RefreshToken  # noqa: F401
