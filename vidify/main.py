import logging
import random
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from .config import settings
from .database import create_tables, engine
from .routers.health import router as health_router
from .routers.auth import router as auth_router
from .routers.follow import router as follow_router
from .routers.users import router as users_router
from .routers.uploads import router as uploads_router
from .routers.videos import router as videos_router
from .routers.lookups import router as lookups_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info(f"{settings.app_name} started")
    yield
    await engine.dispose()


app = FastAPI(
    title="Vidify - Video Sharing API",
    description="""
# Vidify API Documentation

Upload and watch videos, shorts, movies and series, follow creators and react to content.

## 🔐 Authentication

1. `POST /auth/register` (or `POST /auth/login`) emails a one-time passcode
2. `POST /auth/verify-otp` exchanges it for a bearer token

Include the token in the Authorization header: `Authorization: Bearer <your_token>`

## 🎬 Content
- **Uploads**: multipart forms under `/uploads`; files are served from `/media`
- **Browsing**: `/videos`, `/shorts`, `/movies`, `/series`, `/carousel`
- **Reactions**: like/dislike toggles on `/videos/{id}/like` and `/videos/{id}/dislike`

## 👥 Social
- **Follow**: `POST /follow`, `POST /unfollow`, `GET /follow/{user_id}/status`
- **Profiles**: `/users/me`, `/users/{user_id}`
""",
    version="1.0.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(follow_router)
app.include_router(users_router)
app.include_router(uploads_router)
app.include_router(videos_router)
app.include_router(lookups_router)

# Serve uploaded media
Path(settings.media_root).mkdir(parents=True, exist_ok=True)
app.mount("/media", StaticFiles(directory=settings.media_root), name="media")

# CORS for UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Prometheus metrics
REQUEST_COUNT = Counter("http_requests_total", "Total HTTP requests", [
                        "method", "route", "status"])
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2, 5)
)

ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    409: "conflict",
    413: "payload_too_large",
    422: "validation_error",
    429: "too_many_requests",
    503: "service_unavailable",
}


def _route_of(request: Request) -> str:
    return getattr(request.scope.get("route"), "path", request.url.path)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _error_response(request: Request, status_code: int, code: str, message: str,
                    details=None, headers=None) -> JSONResponse:
    request_id = _request_id(request)
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "request_id": request_id},
        headers={**(headers or {}), "X-Request-ID": request_id},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(
        request,
        exc.status_code,
        ERROR_CODES.get(exc.status_code, "error"),
        exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Validation error rid={_request_id(request)}")
    return _error_response(
        request, 422, "validation_error", "Validation error",
        details=jsonable_encoder(exc.errors()))


@app.middleware("http")
async def add_request_id_and_errors(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    # Lightweight JSON log (sample all in debug, a fraction in prod)
    if settings.debug or random.random() < settings.log_sample_rate:
        logger.info({
            "event": "request",
            "method": request.method,
            "path": request.url.path,
            "rid": request_id,
        })
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error rid={request_id}")
        REQUEST_COUNT.labels(method=request.method,
                             route=_route_of(request), status=500).inc()
        return _error_response(request, 500, "internal_server_error", "Internal Server Error")

    REQUEST_LATENCY.observe(time.perf_counter() - start)
    REQUEST_COUNT.labels(method=request.method,
                         route=_route_of(request), status=response.status_code).inc()
    response.headers["X-Request-ID"] = request_id
    return response


@app.get("/")
async def root():
    return {"message": "API is running"}


@app.get("/metrics")
async def metrics(request: Request):
    # In dev/debug mode, expose metrics without auth
    if not settings.debug:
        token = request.headers.get("X-Metrics-Token")
        if not settings.metrics_token or token != settings.metrics_token:
            return _error_response(request, 403, "forbidden", "Forbidden")
    return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
