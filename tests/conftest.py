from __future__ import annotations

import os

# precisa vir antes de qualquer import de storefront (settings é lido no import)
os.environ.setdefault("JWT_SECRET_KEY", "test-signing-key-0123456789-abcdefghijklmnop")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "0"
os.environ["LOG_JSON"] = "0"

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.api.deps import get_db, get_token_service
from storefront.core.config import JwtConfig
from storefront.core.tokens import TokenService
from storefront.crud.user import user_crud
from storefront.db.base import Base
from storefront.main import api
from storefront.models.user import User, UserRole
from storefront.schemas.user import UserCreate

SIGNING_KEY = os.environ["JWT_SECRET_KEY"]
ISSUER = "storefront-api"
AUDIENCE = "storefront-clients"


def make_config(**overrides) -> JwtConfig:
    data = dict(
        secret_key=SIGNING_KEY,
        issuer=ISSUER,
        audience=AUDIENCE,
        access_token_expire_minutes=60,
        refresh_token_expire_days=7,
    )
    data.update(overrides)
    return JwtConfig(**data)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory: sessionmaker) -> Iterator[Session]:
    with session_factory() as s:
        yield s


@pytest.fixture()
def tokens() -> TokenService:
    return TokenService(make_config())


def create_user(
    db: Session,
    *,
    username: str = "alice",
    email: str = "alice@acme.io",
    password: str = "secret123",
    role: UserRole = UserRole.CUSTOMER,
) -> User:
    body = UserCreate(username=username, email=email, password=password, full_name=username.title())
    return user_crud.create(db, body, role=role)


@pytest.fixture()
def user(db: Session) -> User:
    return create_user(db)


@pytest.fixture()
def client(session_factory: sessionmaker, tokens: TokenService) -> Iterator[TestClient]:
    def _get_db() -> Iterator[Session]:
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    api.dependency_overrides[get_db] = _get_db
    api.dependency_overrides[get_token_service] = lambda: tokens
    try:
        yield TestClient(api)
    finally:
        api.dependency_overrides.clear()
