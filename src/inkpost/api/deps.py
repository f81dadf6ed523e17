import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from inkpost.adapters.clock import SystemClock
from inkpost.adapters.fs.filestore import FileSystemImageStore
from inkpost.adapters.s3_store import S3ImageStore
from inkpost.adapters.sqlite.repos import (
    SQLiteBlogCommentRepo,
    SQLitePostRepo,
    SQLiteRelationRepo,
    SQLiteShortUrlRepo,
    SQLiteTweetCommentRepo,
    SQLiteTweetRepo,
    SQLiteUserRepo,
)
from inkpost.api.auth_utils import decode_access_token
from inkpost.app_shell.rate_limit import RateLimiter
from inkpost.components.images import ImageStorePort
from inkpost.domain.entities import User
from inkpost.domain.policy import PolicyEngine
from inkpost.rules.loader import load_rules
from inkpost.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self, data_dir: str | Path | None = None) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(data_dir or os.environ.get("INKPOST_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "inkpost.db")
        self.images_dir = self.data_dir / "images"
        self.drafts_dir = self.data_dir / "drafts"
        self.rules_path = Path(os.environ.get("INKPOST_RULES_PATH", self.base_dir / "rules.yaml"))
        self.migrations_dir = Path(
            os.environ.get("INKPOST_MIGRATIONS_DIR", self.base_dir / "migrations")
        )
        self.image_backend = os.environ.get("INKPOST_IMAGE_BACKEND", "fs")
        self.s3_bucket = os.environ.get("INKPOST_S3_BUCKET", "")
        self.s3_endpoint = os.environ.get("INKPOST_S3_ENDPOINT") or None
        self.cors_origins = [
            o.strip()
            for o in os.environ.get("INKPOST_CORS_ORIGINS", "http://localhost:3000").split(",")
            if o.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def _load_rules(path: Path) -> Rules:
    return load_rules(path)


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return _load_rules(settings.rules_path)


# --- Repos ---
def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


def get_post_repo(settings: Settings = Depends(get_settings)) -> SQLitePostRepo:
    return SQLitePostRepo(settings.db_path)


def get_blog_comment_repo(settings: Settings = Depends(get_settings)) -> SQLiteBlogCommentRepo:
    return SQLiteBlogCommentRepo(settings.db_path)


def get_tweet_repo(settings: Settings = Depends(get_settings)) -> SQLiteTweetRepo:
    return SQLiteTweetRepo(settings.db_path)


def get_tweet_comment_repo(settings: Settings = Depends(get_settings)) -> SQLiteTweetCommentRepo:
    return SQLiteTweetCommentRepo(settings.db_path)


def get_short_url_repo(settings: Settings = Depends(get_settings)) -> SQLiteShortUrlRepo:
    return SQLiteShortUrlRepo(settings.db_path)


def get_blog_like_repo(settings: Settings = Depends(get_settings)) -> SQLiteRelationRepo:
    return SQLiteRelationRepo(settings.db_path, "blog_likes")


def get_tweet_like_repo(settings: Settings = Depends(get_settings)) -> SQLiteRelationRepo:
    return SQLiteRelationRepo(settings.db_path, "tweet_likes")


def get_comment_like_repo(settings: Settings = Depends(get_settings)) -> SQLiteRelationRepo:
    return SQLiteRelationRepo(settings.db_path, "comment_likes")


def get_retweet_repo(settings: Settings = Depends(get_settings)) -> SQLiteRelationRepo:
    return SQLiteRelationRepo(settings.db_path, "retweets")


def get_follow_repo(settings: Settings = Depends(get_settings)) -> SQLiteRelationRepo:
    return SQLiteRelationRepo(settings.db_path, "follows")


# --- Services ---
def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules.rbac)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# Rate limiter keeps its history in memory, so there is one per process.
_rate_limiter_instance: RateLimiter | None = None


def get_rate_limiter(rules: Rules = Depends(get_rules)) -> RateLimiter:
    global _rate_limiter_instance
    if _rate_limiter_instance is None:
        _rate_limiter_instance = RateLimiter(rules.rate_limits, get_clock())
    return _rate_limiter_instance


@lru_cache
def _s3_store(bucket: str, endpoint_url: str | None) -> S3ImageStore:
    return S3ImageStore(bucket, endpoint_url=endpoint_url)


def get_image_store(settings: Settings = Depends(get_settings)) -> ImageStorePort:
    if settings.image_backend == "s3":
        return _s3_store(settings.s3_bucket, settings.s3_endpoint)
    return FileSystemImageStore(base_path=str(settings.images_dir))


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/session", auto_error=False)


def _resolve_user(request: Request, token: str | None, user_repo: SQLiteUserRepo) -> User | None:
    # Cookie first (HttpOnly), then the Authorization header.
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ", 1)[1]
    if not token:
        return None

    payload = decode_access_token(token)
    if not payload:
        return None
    user_id = payload.get("sub")
    if not isinstance(user_id, str):
        return None
    try:
        uid = UUID(user_id)
    except ValueError:
        return None
    return user_repo.get_by_id(uid)


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> User:
    user = _resolve_user(request, token, user_repo)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> User | None:
    return _resolve_user(request, token, user_repo)
