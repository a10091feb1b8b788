"""
FieldLines API Server

FastAPI server for sportsground field layouts, line-marking bookings and
platform administration.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import os
import uvicorn
from slowapi import _rate_limit_exceeded_handler  # type: ignore
from slowapi.errors import RateLimitExceeded  # type: ignore

from fieldlines.api.routes import router, limiter as routes_limiter
from fieldlines.database import db
from fieldlines.database.init_defaults import init_defaults
from fieldlines.services import auth_service, settings_service, user_service

# Set up logging
# Log level is configured via environment variable (default: INFO)
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
numeric_level = getattr(logging, log_level, logging.INFO)
logging.basicConfig(
    level=numeric_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Reachable while maintenance mode is on
MAINTENANCE_ALLOWED_PATHS = (
    "/health",
    "/api/maintenance/status",
    "/api/auth/login",
    "/docs",
    "/openapi.json",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events."""
    logger.info("Starting up FieldLines API...")

    # Create tables that migrations have not created yet
    try:
        await db.init_database()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    try:
        await init_defaults()
        logger.info("Default values initialized")
    except Exception as e:
        logger.error(f"Failed to initialize defaults: {e}", exc_info=True)

    yield

    logger.info("Shutting down FieldLines API...")
    try:
        await settings_service.close_redis_connection()
        logger.info("Redis connection closed")
    except Exception as e:
        logger.error(f"Error closing Redis connection: {e}", exc_info=True)


app = FastAPI(
    title="FieldLines API",
    description="API for designing sports field layouts and booking line-marking services",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup rate limiter
app.state.limiter = routes_limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as {"error": message}; dict details pass through."""
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request validation failures are a 400 with the first message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


async def _is_admin_request(request: Request) -> bool:
    authorization = request.headers.get("authorization", "")
    if not authorization.lower().startswith("bearer "):
        return False
    payload = auth_service.verify_token(authorization[7:])
    if not payload or payload.get("user_id") is None:
        return False
    async with db.AsyncSessionLocal() as session:
        user = await user_service.get_user_by_id(session, payload["user_id"])
    return bool(user) and user_service.is_admin(user)


@app.middleware("http")
async def maintenance_mode_middleware(request: Request, call_next):
    """Answer 503 while maintenance mode is on, except for admins and a few paths."""
    if request.method == "OPTIONS" or request.url.path.startswith(MAINTENANCE_ALLOWED_PATHS):
        return await call_next(request)

    try:
        async with db.AsyncSessionLocal() as session:
            enabled = await settings_service.is_maintenance_mode(session)
            message = await settings_service.get_maintenance_message(session) if enabled else None
    except Exception as e:
        logger.warning(f"Could not check maintenance mode, allowing request: {e}")
        return await call_next(request)

    if enabled and not await _is_admin_request(request):
        return JSONResponse(status_code=503, content={"error": "maintenance_mode", "message": message})
    return await call_next(request)


# Add CORS middleware - origins configured via ALLOWED_ORIGINS env var
allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
