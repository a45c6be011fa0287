import logging
import sys
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.errors import MarketplaceError
from app.routers import admin, auth, categories, favorites, listings, orders, vendors
from app.utils.logger import logger

# Global logging configuration
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,
)

app = FastAPI(title="Cimplico Marketplace API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
    max_age=3600,
)

_HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "NOT_AUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def _error_body(code: str, message: str, details=None) -> dict:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}


# Request ID: reuse the caller's X-Request-ID when present
@app.middleware("http")
async def request_logger(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
    request.state.rid = rid
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception(f"Unhandled error on {request.method} {request.url.path} rid={rid}: {e}")
        response = JSONResponse(
            _error_body("SERVER_ERROR", "Internal server error", {"rid": rid}),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({elapsed_ms:.1f} ms) rid={rid}"
    )
    response.headers["X-Request-ID"] = rid
    return response


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    rid = getattr(request.state, "rid", "unknown")
    logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message} rid={rid}")
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        _error_body("VALIDATION_ERROR", "Invalid request data", jsonable_encoder(exc.errors())),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = _HTTP_ERROR_CODES.get(exc.status_code, "SERVER_ERROR" if exc.status_code >= 500 else "HTTP_ERROR")
    return JSONResponse(
        _error_body(code, str(exc.detail)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


app.include_router(auth.router)
app.include_router(categories.router)
app.include_router(listings.router)
app.include_router(favorites.router)
app.include_router(orders.router)
app.include_router(vendors.router)
app.include_router(admin.router)


def run_migrations() -> None:
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config(settings.ALEMBIC_INI_PATH)
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(alembic_cfg, "head")


@app.on_event("startup")
async def startup_event():
    logger.info("=" * 60)
    logger.info(f"Cimplico Marketplace API starting up (environment={settings.ENVIRONMENT})")
    logger.info("=" * 60)

    if settings.storage_backend == "sql" and settings.RUN_MIGRATIONS:
        logger.info(f"Running database migrations against {settings.masked_database_url}")
        run_migrations()
        logger.info("Database migrations completed")

    from app.services.auth import purge_expired_sessions
    from app.services.database import get_storage
    storage = get_storage()
    purge_expired_sessions(storage)
    logger.info(f"Storage backend ready: {storage.backend_name}")


@app.get("/healthz")
async def healthz():
    return {"status": "ok", "storage": settings.storage_backend}


@app.get("/")
async def root():
    return {
        "message": "Cimplico Marketplace API",
        "version": "1.0.0",
        "docs": "/docs"
    }
