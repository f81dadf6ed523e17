"""
Tweets component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from inkpost.domain.entities import Tweet, TweetComment, User


@dataclass(frozen=True)
class TweetValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class CreateTweetInput:
    user: User | None
    content: str | None = ""
    image_keys: tuple[str, ...] = ()
    reply_to_id: UUID | None = None


@dataclass(frozen=True)
class UpdateTweetInput:
    user: User | None
    tweet_id: UUID
    content: str | None


@dataclass(frozen=True)
class DeleteTweetInput:
    user: User | None
    tweet_id: UUID


@dataclass(frozen=True)
class TweetOutput:
    tweet: Tweet | None = None
    removed_image_keys: tuple[str, ...] = ()
    errors: list[TweetValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class FeedComment:
    comment: TweetComment
    like_count: int = 0
    is_liked: bool = False


@dataclass(frozen=True)
class FeedItem:
    """A tweet as shown in the feed, with counts relative to the viewer."""

    tweet: Tweet
    like_count: int = 0
    comment_count: int = 0
    retweet_count: int = 0
    is_liked: bool = False
    comments: tuple[FeedComment, ...] = ()


@dataclass(frozen=True)
class FeedOutput:
    items: list[FeedItem] = field(default_factory=list)
