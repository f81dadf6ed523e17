from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class RangeRule(BaseModel):
    min: int
    max: int


class PostsRules(BaseModel):
    title: RangeRule
    short_description: RangeRule
    max_tags: int = 10
    slug_pattern: str = r"^[a-z0-9_]+(?:-[a-z0-9_]+)*$"


class BlocksRules(BaseModel):
    allowed_types: list[str]
    max_blocks_per_post: int
    max_richtext_bytes: int = 400_000
    max_code_bytes: int = 100_000
    max_table_cells: int = 2_000


class TweetsRules(BaseModel):
    max_length: int = 280
    feed_limit: int = 50


class UsersRules(BaseModel):
    name: RangeRule = RangeRule(min=1, max=50)
    username: RangeRule = RangeRule(min=3, max=20)
    username_pattern: str = r"^[a-z0-9_]+$"
    max_bio_length: int = 160
    profile_tweet_limit: int = 50


class ImagesRules(BaseModel):
    public_origin: str


class RateLimitWindow(BaseModel):
    window_seconds: int
    max_requests: int | None = None


class RateLimitRules(BaseModel):
    image_delete: RateLimitWindow


class OutlineRules(BaseModel):
    activation_threshold_px: int = 100


class ShortLinksRules(BaseModel):
    code_length: int = 6
    max_attempts: int = 10
    alphabet: str = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"


class RbacRules(BaseModel):
    roles: dict[str, list[str]]


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    posts: PostsRules
    blocks: BlocksRules
    tweets: TweetsRules
    users: UsersRules = Field(default_factory=UsersRules)
    images: ImagesRules
    rate_limits: RateLimitRules
    outline: OutlineRules
    short_links: ShortLinksRules
    rbac: RbacRules
    ops: OpsRules
