from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models use camelCase; snake_case is accepted on input too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Users ---
class UserPublic(CamelModel):
    id: UUID
    name: str
    username: str | None = None
    image: str | None = None


class UserResponse(UserPublic):
    email: str
    bio: str | None = None
    role: str


class SessionRequest(CamelModel):
    """Profile handed over by the OAuth provider callback."""

    email: str
    name: str
    image: str | None = None
    provider_account_id: str | None = None


class SessionResponse(CamelModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


# --- Blogs ---
class BlogContent(CamelModel):
    components: list[dict[str, Any]] = Field(default_factory=list)
    component_data: dict[str, Any] = Field(default_factory=dict)


class BlogCreateRequest(CamelModel):
    title: str = ""
    slug: str | None = None
    short_description: str = ""
    tags: list[str] | str = Field(default_factory=list)
    thumbnail_key: str | None = None
    content: BlogContent = Field(default_factory=BlogContent)
    published: bool = True


class BlogUpdateRequest(CamelModel):
    """Full update from the editor; components carry their data inline."""

    title: str = ""
    short_description: str = ""
    tags: list[str] | str = Field(default_factory=list)
    thumbnail_key: str | None = None
    components: list[dict[str, Any]] | None = None
    component_data: dict[str, Any] = Field(default_factory=dict)
    published: bool | None = None


class BlogPatchRequest(CamelModel):
    title: str | None = None
    short_description: str | None = None
    tags: list[str] | str | None = None
    thumbnail_key: str | None = None
    published: bool | None = None


class BlogRef(CamelModel):
    id: UUID
    slug: str


class BlogCreateResponse(CamelModel):
    success: bool = True
    blog: BlogRef
    message: str


class BlogSummary(CamelModel):
    id: UUID
    title: str
    slug: str
    short_description: str
    tags: list[str]
    thumbnail_key: str | None = None
    thumbnail_url: str | None = None
    published: bool
    user_id: UUID
    created_at: datetime
    updated_at: datetime


class BlogListResponse(CamelModel):
    blogs: list[BlogSummary]


class ComponentRef(CamelModel):
    id: str
    type: str
    order: int


class HeadingModel(CamelModel):
    id: str
    text: str
    level: int


class OutlineNodeModel(CamelModel):
    id: str
    text: str
    level: int
    children: list["OutlineNodeModel"] = Field(default_factory=list)


class BlogDetail(BlogSummary):
    components: list[ComponentRef]
    component_data: dict[str, Any]
    html: str
    headings: list[HeadingModel]
    outline: list[OutlineNodeModel]
    activation_threshold_px: int = 100
    like_count: int = 0
    comment_count: int = 0
    is_liked: bool = False


class BlogUpdateResponse(CamelModel):
    success: bool = True
    blog: BlogRef
    removed_image_keys: list[str] = Field(default_factory=list)


class SuccessResponse(CamelModel):
    success: bool = True


# --- Engagement ---
class LikeToggleResponse(CamelModel):
    liked: bool
    like_count: int


class LikeStatusResponse(CamelModel):
    like_count: int
    is_liked: bool


class StatsRequest(CamelModel):
    blog_ids: Any = None


class PostStatsModel(CamelModel):
    like_count: int
    comment_count: int
    is_liked: bool


class StatsResponse(CamelModel):
    stats: dict[str, PostStatsModel]


class FollowRequest(CamelModel):
    user_id: UUID | None = None


class FollowResponse(CamelModel):
    message: str
    following: bool


class FollowCheckRequest(CamelModel):
    user_ids: Any = None


class FollowCheckResponse(CamelModel):
    following_ids: list[UUID]


class TweetTargetRequest(CamelModel):
    tweet_id: UUID | None = None


class TweetLikeResponse(CamelModel):
    message: str
    liked: bool
    like_count: int


class RetweetResponse(CamelModel):
    message: str
    retweeted: bool
    retweet_count: int


class CommentLikeRequest(CamelModel):
    comment_id: UUID | None = None


class CommentLikeResponse(CamelModel):
    message: str
    liked: bool
    like_count: int


# --- Comments ---
class CommentCreateRequest(CamelModel):
    content: str = ""


class BlogCommentResponse(CamelModel):
    id: UUID
    blog_id: UUID
    user_id: UUID
    content: str
    created_at: datetime


class BlogCommentListResponse(CamelModel):
    comments: list[BlogCommentResponse]


class BlogCommentCreated(CamelModel):
    comment: BlogCommentResponse


class TweetCommentRequest(CamelModel):
    tweet_id: UUID | None = None
    content: str = ""


class TweetCommentResponse(CamelModel):
    id: UUID
    tweet_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    like_count: int = 0
    is_liked: bool = False


class TweetCommentCreated(CamelModel):
    comment: TweetCommentResponse


# --- Tweets ---
class TweetCreateRequest(CamelModel):
    content: str | None = ""
    image_keys: list[str] = Field(default_factory=list)
    reply_to_id: UUID | None = None


class TweetUpdateRequest(CamelModel):
    tweet_id: UUID | None = None
    content: str | None = None


class TweetResponse(CamelModel):
    id: UUID
    user_id: UUID
    content: str
    image_keys: list[str]
    image_urls: list[str]
    reply_to_id: UUID | None = None
    is_retweet: bool = False
    created_at: datetime
    updated_at: datetime
    like_count: int = 0
    comment_count: int = 0
    retweet_count: int = 0
    is_liked: bool = False
    comments: list[TweetCommentResponse] = Field(default_factory=list)


class TweetEnvelope(CamelModel):
    tweet: TweetResponse


class TweetListResponse(CamelModel):
    tweets: list[TweetResponse]


class MessageResponse(CamelModel):
    message: str


# --- Images ---
class ImageBulkDeleteRequest(CamelModel):
    keys: list[str] = Field(default_factory=list)


class ImageDeleteRequest(CamelModel):
    key: str = ""


class ImageDeleteResponse(CamelModel):
    success: bool = True
    message: str
    deleted: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


# --- Short links ---
class ShortUrlRequest(CamelModel):
    url: str | None = None
    blog_slug: str | None = None


class ShortUrlResponse(CamelModel):
    short_url: str
    short_code: str


class ShortUrlLookupResponse(CamelModel):
    original_url: str
    clicks: int


# --- Profiles ---
class ProfileUser(UserPublic):
    bio: str | None = None
    created_at: datetime
    follower_count: int = 0
    following_count: int = 0
    tweet_count: int = 0


class ProfileResponse(CamelModel):
    user: ProfileUser
    tweets: list[TweetResponse]
    is_following: bool = False
    is_following_back: bool = False


class ProfileUpdateRequest(CamelModel):
    name: str | None = None
    username: str | None = None
    bio: str | None = None
    profile_image_key: str | None = None


class ProfileUpdateResponse(CamelModel):
    success: bool = True
    user: UserResponse
