"""
Comments component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

from inkpost.domain.entities import BlogComment, TweetComment, User


@dataclass(frozen=True)
class CommentValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class AddCommentInput:
    """`parent_id` is the post or tweet being commented on."""

    user: User | None
    parent_id: UUID
    content: str


@dataclass(frozen=True)
class DeleteCommentInput:
    user: User | None
    comment_id: UUID
    # When given, the comment must belong to this post or tweet.
    parent_id: UUID | None = None


@dataclass(frozen=True)
class CommentOutput:
    comment: BlogComment | TweetComment | None = None
    errors: list[CommentValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class CommentListOutput:
    comments: list[BlogComment] = field(default_factory=list)
    errors: list[CommentValidationError] = field(default_factory=list)
    success: bool = True
