"""Main FastAPI application."""
import json
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from alarmhub.api.accounts import router as accounts_router
from alarmhub.api.devices import router as devices_router
from alarmhub.domain.common.errors import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError as DomainValidationError,
)
from alarmhub.infra.db.base import Base, dispose_engine, get_engine
# Import all models to ensure they're registered with Base
from alarmhub.infra.db.models import (  # noqa: F401
    AccountModel,
    AlarmModel,
    DeviceModel,
    DeviceStatusModel,
    PushTokenModel,
)
from alarmhub.settings import settings

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

_SECRET_HEADERS = ("authorization", "x-webhook-secret")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    try:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        # database might not be ready yet; /ready reports it
        logger.warning("Could not connect to database during startup: %s", e)

    if settings.push_enabled:
        logger.info("Push notifications enabled (FCM)")
    else:
        logger.info("Push notifications disabled (PUSH_ENABLED=false); alarms are recorded without fan-out")

    yield

    await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        logger.info("📥 [SERVER REQUEST] %s %s", request.method, request.url.path)

        if logger.isEnabledFor(logging.DEBUG):
            headers = dict(request.headers)
            # never log relay secrets
            for name in _SECRET_HEADERS:
                if name in headers:
                    headers[name] = "***"
            logger.debug("   Headers: %s", headers)

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "📤 [SERVER RESPONSE] %s %s - %s (%.3fs)",
            request.method, request.url.path, response.status_code, process_time,
        )
        return response


# Add logging middleware AFTER CORS (CORS must be first)
app.add_middleware(LoggingMiddleware)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors with detailed logging."""
    logger.error("❌ [VALIDATION ERROR] %s %s", request.method, request.url.path)
    if exc.body:
        body = exc.body.decode("utf-8", "replace") if isinstance(exc.body, bytes) else json.dumps(exc.body, default=str)
        logger.error("   Request body: %s", body)
    errors = exc.errors()
    for i, error in enumerate(errors, 1):
        logger.error("   Error %d: %s", i, json.dumps(error, default=str))
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{field}: {first.get('msg')}" if field else str(first.get("msg", "Invalid request"))
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": message, "detail": json.loads(json.dumps(errors, default=str))},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


# Domain error handlers: map domain exceptions to correct HTTP status
@app.exception_handler(DomainValidationError)
async def domain_validation_handler(request: Request, exc: DomainValidationError):
    """Return 400 for malformed input (no side effects happened)."""
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return _error(400, exc.message)


@app.exception_handler(NotFoundError)
async def domain_not_found_handler(request: Request, exc: NotFoundError):
    """Return 404 when a resource is not found."""
    return _error(404, exc.message)


@app.exception_handler(ConflictError)
async def domain_conflict_handler(request: Request, exc: ConflictError):
    """Return 409 for conflict errors."""
    return _error(409, exc.message)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    """Deployment problem (no accounts, missing push credentials): 500 and an operator-visible log."""
    logger.error("Configuration error on %s %s: %s", request.method, request.url.path, exc.message)
    return _error(500, exc.message)


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence error on %s %s: %s", request.method, request.url.path, exc.message)
    return _error(500, exc.message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}


# Readiness: config, packages, DB, push credentials
@app.get("/ready")
async def readiness():
    """Readiness endpoint: run all checks and return 200 if ready, 503 otherwise."""
    from alarmhub.readiness import is_ready, run_all_checks_async
    checks = await run_all_checks_async()
    ready, summary = is_ready(checks)
    if ready:
        return {"ready": True, "checks": summary}
    return JSONResponse(
        status_code=503,
        content={"ready": False, "checks": summary},
    )


app.include_router(devices_router)
app.include_router(accounts_router)
