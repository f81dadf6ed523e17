from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---
RoleType = Literal["user", "admin"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Users ---

class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    name: str
    username: str | None = None
    image: str | None = None
    bio: str | None = None
    role: RoleType = "user"
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# --- Posts ---

class Post(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    slug: str
    short_description: str
    tags: list[str] = Field(default_factory=list)
    thumbnail_key: str | None = None
    published: bool = True
    user_id: UUID
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class StorageRow(BaseModel):
    """
    Persisted shape of one content block.

    A single denormalized row shared by every block type; each type only
    fills its own subset of the payload columns.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    blog_id: UUID | None = None
    type: str
    order: int
    content: Any | None = None
    text: str | None = None
    image_key: str | None = None
    alignment: str | None = None
    video_url: str | None = None
    video_type: str | None = None


class BlogComment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    blog_id: UUID
    user_id: UUID
    content: str
    created_at: datetime = Field(default_factory=_utcnow)


# --- Feed ---

class Tweet(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    content: str = ""
    image_keys: list[str] = Field(default_factory=list)
    reply_to_id: UUID | None = None
    is_retweet: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class TweetComment(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    tweet_id: UUID
    user_id: UUID
    content: str
    created_at: datetime = Field(default_factory=_utcnow)


# --- Short links ---

class ShortUrl(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    short_code: str
    original_url: str
    blog_slug: str | None = None
    clicks: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
