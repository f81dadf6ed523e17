"""
Engagement component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from inkpost.domain.entities import User


@dataclass(frozen=True)
class EngagementValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ToggleInput:
    """`user` acts on `target_id` (a post, tweet, comment or user)."""

    user: User | None
    target_id: UUID


@dataclass(frozen=True)
class ToggleOutput:
    """
    State after a toggle.

    `active` is True when the relation now exists (liked, following,
    retweeted). `count` is re-read from storage after the change.
    """

    active: bool = False
    count: int = 0
    errors: list[EngagementValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class PostStats:
    like_count: int = 0
    comment_count: int = 0
    is_liked: bool = False
