"""
University LMS API

Application factory wiring: logging, lifespan hooks, CORS, the v1 router,
health probes and the exception handlers that keep every failure inside the
`ActionResult` envelope.
"""
import logging
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import LMSServiceError
from app.db.database import check_db_connection, engine
from app.db.redis import check_redis_connection, close_arq_pool, close_redis_pool, get_redis_pool
from app.schemas.common import ActionResult

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


async def probe_dependencies() -> Dict[str, bool]:
    """Ping Postgres and Redis. Never raises; a failed probe reads as False."""
    results = {}
    for name, check in (("database", check_db_connection), ("redis", check_redis_connection)):
        try:
            results[name] = bool(await check())
        except Exception as e:
            logger.error(f"{name} probe failed: {e}")
            results[name] = False
    return results


# ============================================================
# Lifespan
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup probes the database and Redis but never blocks boot: without Redis
    only notifications are lost, and database errors surface per request.
    """
    logger.info(f"Starting {settings.PROJECT_NAME} (debug={settings.DEBUG})")

    get_redis_pool()
    for name, healthy in (await probe_dependencies()).items():
        if healthy:
            logger.info(f"{name} reachable")
        else:
            logger.warning(f"{name} unreachable at startup")

    yield

    logger.info(f"Stopping {settings.PROJECT_NAME}")
    await close_redis_pool()
    await close_arq_pool()
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    University LMS API

    - Quiz authoring and lifecycle
    - Timed student attempts with autosave
    - Automatic grading and result review
    - Transcripts, gradebooks and statistics
    """,
    version=APP_VERSION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.DEBUG else settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/", tags=["Health"])
async def root():
    return {"name": settings.PROJECT_NAME, "version": APP_VERSION}


@app.get("/health", tags=["Health"])
async def health_check():
    """200 when Postgres and Redis both answer, 503 otherwise."""
    results = await probe_dependencies()
    healthy = all(results.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            **{name: "connected" if ok else "disconnected" for name, ok in results.items()},
        },
    )


# ----------------------------------------------------
# Exception Handlers
# ----------------------------------------------------
def _envelope(status_code: int, error: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ActionResult.fail(error, code).model_dump(),
    )


@app.exception_handler(LMSServiceError)
async def service_error_handler(request: Request, exc: LMSServiceError):
    """Service errors raised outside `run_action`, e.g. by permission dependencies."""
    return _envelope(exc.status_code, exc.message, exc.code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = "UNAUTHORIZED" if exc.status_code == 401 else "HTTP_ERROR"
    response = _envelope(exc.status_code, str(exc.detail), code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return _envelope(422, message, "VALIDATION_ERROR")


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"Internal server error on {request.method} {request.url.path}")
    return _envelope(500, "An unexpected error occurred", "INTERNAL_ERROR")
