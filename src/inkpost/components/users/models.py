"""
Users component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from inkpost.domain.entities import Tweet, User


@dataclass(frozen=True)
class UserValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class GetProfileInput:
    username: str | None
    viewer: User | None = None


@dataclass(frozen=True)
class ProfileTweet:
    tweet: Tweet
    like_count: int = 0
    comment_count: int = 0


@dataclass(frozen=True)
class ProfileOutput:
    """A user's public page; follow flags are relative to the viewer."""

    user: User | None = None
    follower_count: int = 0
    following_count: int = 0
    tweet_count: int = 0
    tweets: list[ProfileTweet] = field(default_factory=list)
    is_following: bool = False
    is_following_back: bool = False
    errors: list[UserValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class UpdateProfileInput:
    user: User | None
    name: str | None
    username: str | None
    bio: str | None = None
    profile_image_key: str | None = None


@dataclass(frozen=True)
class UserOutput:
    user: User | None = None
    errors: list[UserValidationError] = field(default_factory=list)
    success: bool = True
