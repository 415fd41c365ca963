import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

from storefront.api.deps import build_token_service
from storefront.api.v1.router import api_router
from storefront.core.config import settings
from storefront.core.errors import AuthError, Misconfiguration
from storefront.core.logging import setup_logging
from storefront.db.bootstrap import run_migrations_and_seed

setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
log = logging.getLogger(__name__)

api = FastAPI(
    title="Storefront API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    swagger_ui_parameters={"displayRequestDuration": True, "persistAuthorization": True},
)

# métricas /metrics (Prometheus)
Instrumentator().instrument(api).expose(api, include_in_schema=False, should_gzip=True)

api.include_router(api_router, prefix="/api/v1")

@api.get("/healthz", tags=["health"])
def healthz():
    return {"status": "ok"}

@api.on_event("startup")
def startup():
    # chave ausente/curta derruba o processo aqui, não no primeiro request
    build_token_service()
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        run_migrations_and_seed()

@api.exception_handler(Misconfiguration)
def handle_misconfiguration(request: Request, exc: Misconfiguration):
    log.error("misconfiguration: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"code": exc.code, "message": "Server misconfigured.", "details": None},
    )

@api.exception_handler(AuthError)
def handle_auth_error(request: Request, exc: AuthError):
    # nada de detalhes internos do token na resposta
    return JSONResponse(
        status_code=401,
        content={"code": "UNAUTHENTICATED", "message": str(exc) or "Unauthenticated.", "details": None},
        headers={"WWW-Authenticate": "Bearer"},
    )

@api.exception_handler(IntegrityError)
def handle_integrity_error(request: Request, exc: IntegrityError):
    return JSONResponse(
        status_code=409,
        content={"code": "UNIQUE_VIOLATION", "message": "Duplicate record.", "details": None},
    )

@api.exception_handler(Exception)
def handle_unexpected(request: Request, exc: Exception):
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"code": "INTERNAL_ERROR", "message": "Internal error.", "details": None},
    )
