import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inkpost.adapters.sqlite.migrator import SQLiteMigrator
from inkpost.api.deps import get_rules, get_settings
from inkpost.api.routes import auth, blogs, comments, follow, images, short_urls, tweets, users
from inkpost.app_shell.config import validate_ops_rules

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("inkpost.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load rules and migrate the database before serving (fail-fast)."""
    settings = get_settings()

    try:
        rules = get_rules(settings)
        validate_ops_rules(rules)
        logger.info("Rules loaded from %s", settings.rules_path)

        settings.data_dir.mkdir(parents=True, exist_ok=True)
        applied = SQLiteMigrator(settings.db_path, str(settings.migrations_dir)).run_migrations()
        logger.info("Database ready at %s (%d migrations applied)", settings.db_path, len(applied))
    except Exception:
        logger.critical("Startup failed", exc_info=True)
        sys.exit(1)

    yield


app = FastAPI(
    title="inkpost API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(blogs.router, prefix="/api/blogs", tags=["Blogs"])
app.include_router(follow.router, prefix="/api/follow", tags=["Follow"])
app.include_router(users.router, prefix="/api/user", tags=["Users"])
app.include_router(tweets.router, prefix="/api/tweets", tags=["Tweets"])
app.include_router(comments.router, prefix="/api/comments", tags=["Comments"])
app.include_router(images.router, prefix="/api/s3", tags=["Images"])
app.include_router(short_urls.router, prefix="/api/short-url", tags=["Short links"])
app.include_router(short_urls.redirect_router, tags=["Short links"])


# CORS (Allow Frontend)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and path parameters are client errors, reported as 400."""
    detail = "Invalid request"
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        msg = first.get("msg", "invalid value")
        detail = f"{detail}: {loc}: {msg}" if loc else f"{detail}: {msg}"
    logger.info("Rejected %s %s: %s", request.method, request.url.path, detail)
    return JSONResponse(status_code=400, content={"detail": detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "inkpost"}
