"""
Signage Ad Manager API.

Wires routers, middleware and error rendering, and owns the housekeeping
worker's lifetime. Players poll ``/api/v1/player/feed``; everything else is
the business/admin back office.
"""
from contextlib import asynccontextmanager
import os
import time
import uuid
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException
from app import database
from app.api.v1 import api_router
from app.config import DISPLAY_IDS, HOUSEKEEPING_SETTINGS
from app.jobs.housekeeping import HousekeepingWorker
from app.models import db as _db_models  # noqa: F401  (registers tables on Base.metadata)
from app.services.errors import AdManagerError, CampaignNotFound, CampaignStateError, InvalidInput, RecoveryError
from app.utils import get_logger, setup_logging

SERVICE = "signage-ad-manager"
VERSION = "1.0.0"

setup_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE", "logs/app.log"),
    enable_console=True
)
logger = get_logger(__name__)

# Domain errors that escape an endpoint map to these statuses; anything else is a 500
DOMAIN_ERROR_STATUS = {
    InvalidInput: 400,
    RecoveryError: 400,
    CampaignNotFound: 404,
    CampaignStateError: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    database.Base.metadata.create_all(bind=database.engine)
    worker = None
    if HOUSEKEEPING_SETTINGS["enabled"]:
        worker = HousekeepingWorker()
        worker.start()
    app.state.housekeeping = worker
    logger.info("Ad manager started", displays=DISPLAY_IDS, housekeeping=worker is not None)
    try:
        yield
    finally:
        if worker is not None:
            worker.stop()
        logger.info("Ad manager stopped")


app = FastAPI(
    title="Signage Ad Manager",
    description=(
        "Playlist feed for signage displays plus the campaign back office: "
        "business uploads, admin review, scheduling, per-display targeting, "
        "manual overrides and soft delete with emailed recovery links.\n\n"
        "Back-office routes take `Authorization: Bearer <api key>`; the player feed is public."
    ),
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)
app.state.housekeeping = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag each request with an id, time it and log the outcome."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    log = logger.bind(request_id=request_id, method=request.method, path=request.url.path)
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(elapsed_ms)
    response.headers["X-Content-Type-Options"] = "nosniff"
    # Feed polls are the bulk of traffic; keep them at debug
    emit = log.debug if request.url.path.endswith("/player/feed") and response.status_code < 500 else log.info
    emit("Request completed", status_code=response.status_code, process_time_ms=elapsed_ms)
    return response


def _error(request: Request, status_code: int, message, **extra) -> JSONResponse:
    body = {
        "success": False,
        "message": message,
        "request_id": getattr(request.state, "request_id", "unknown"),
    }
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    logger.warning("Request validation failed", path=request.url.path, errors=details)
    return _error(request, 422, "Request validation failed", details=details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning("HTTP exception", path=request.url.path, status_code=exc.status_code, detail=exc.detail)
    response = _error(request, exc.status_code, exc.detail)
    for name, value in (getattr(exc, "headers", None) or {}).items():
        response.headers[name] = value
    return response


@app.exception_handler(AdManagerError)
async def domain_exception_handler(request: Request, exc: AdManagerError):
    status_code = next(
        (code for cls, code in DOMAIN_ERROR_STATUS.items() if isinstance(exc, cls)),
        500,
    )
    logger.warning("Domain error", path=request.url.path, code=exc.code, error=str(exc))
    return _error(request, status_code, str(exc), code=exc.code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True
    )
    return _error(request, 500, "Internal server error")


@app.get("/health", tags=["health"], summary="Liveness probe")
async def health_check():
    return {"status": "healthy", "service": SERVICE, "version": VERSION, "timestamp": time.time()}


@app.get("/health/detailed", tags=["health"], summary="Readiness probe")
async def detailed_health_check():
    """Checks the database and reports worker state and the configured displays."""
    checks = {}
    status = "healthy"
    db = database.SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        checks["database"] = f"unhealthy: {e}"
        status = "degraded"
    finally:
        db.close()
    checks["housekeeping"] = "running" if app.state.housekeeping is not None else "disabled"
    checks["displays"] = DISPLAY_IDS
    return {"status": status, "service": SERVICE, "version": VERSION, "timestamp": time.time(), "checks": checks}


@app.get("/", tags=["root"])
async def root():
    return {
        "message": "Signage Ad Manager API",
        "version": VERSION,
        "documentation": "/docs",
        "health_check": "/health",
        "player_feed": "/api/v1/player/feed",
    }


app.include_router(api_router, prefix="/api/v1")

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        reload_dirs=["app"],
        log_level="info",
    )
