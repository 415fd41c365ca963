# storefront/core/config.py
import os
from pydantic import BaseModel, Field

from dotenv import load_dotenv

from storefront.core.errors import Misconfiguration

load_dotenv()  # lê .env se existir

# HS256 exige chave de pelo menos 256 bits
MIN_SIGNING_KEY_BYTES = 32
ALGORITHM = "HS256"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _default_database_url() -> str:
    if os.getenv("DATABASE_URL"):
        return os.environ["DATABASE_URL"]
    data_dir = os.path.abspath(os.getenv("DATA_DIR", "./data"))
    os.makedirs(data_dir, exist_ok=True)
    return f"sqlite:///{os.path.join(data_dir, 'storefront.db')}"


class Settings(BaseModel):
    DATABASE_URL: str = Field(default_factory=_default_database_url)

    # sem default: chave ausente vira string vazia e falha no startup
    JWT_SECRET_KEY: str = Field(default_factory=lambda: os.getenv("JWT_SECRET_KEY", ""))
    JWT_ISSUER: str = Field(default_factory=lambda: os.getenv("JWT_ISSUER", "storefront-api"))
    JWT_AUDIENCE: str = Field(default_factory=lambda: os.getenv("JWT_AUDIENCE", "storefront-clients"))
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")))
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default_factory=lambda: int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7")))
    REVOKE_CHAIN_ON_REUSE: bool = Field(default_factory=lambda: _env_bool("REVOKE_CHAIN_ON_REUSE", "1"))

    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default_factory=lambda: _env_bool("RUN_MIGRATIONS_ON_STARTUP", "1"))
    ADMIN_EMAIL: str = Field(default_factory=lambda: os.getenv("ADMIN_EMAIL", ""))
    ADMIN_PASSWORD: str = Field(default_factory=lambda: os.getenv("ADMIN_PASSWORD", ""))

    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    LOG_JSON: bool = Field(default_factory=lambda: _env_bool("LOG_JSON", "1"))


class JwtConfig(BaseModel):
    """Configuração explícita entregue ao TokenService (nada de lookup global)."""

    model_config = {"frozen": True}

    secret_key: str
    issuer: str
    audience: str
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7
    algorithm: str = ALGORITHM

    @classmethod
    def from_settings(cls, s: "Settings") -> "JwtConfig":
        check_signing_key(s.JWT_SECRET_KEY)
        return cls(
            secret_key=s.JWT_SECRET_KEY,
            issuer=s.JWT_ISSUER,
            audience=s.JWT_AUDIENCE,
            access_token_expire_minutes=s.ACCESS_TOKEN_EXPIRE_MINUTES,
            refresh_token_expire_days=s.REFRESH_TOKEN_EXPIRE_DAYS,
        )


def check_signing_key(key: str | None) -> None:
    if not key:
        raise Misconfiguration("JWT_SECRET_KEY is not set")
    if len(key.encode("utf-8")) < MIN_SIGNING_KEY_BYTES:
        raise Misconfiguration(
            f"JWT_SECRET_KEY must be at least {MIN_SIGNING_KEY_BYTES} bytes for {ALGORITHM}"
        )


settings = Settings()
