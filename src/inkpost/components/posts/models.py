"""
Posts component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from inkpost.components.mapper import MappedBlocks
from inkpost.components.render import RenderedDocument
from inkpost.domain.entities import Post, User

# --- Validation Error ---


@dataclass(frozen=True)
class PostValidationError:
    """Post validation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class CreatePostInput:
    """
    Input for creating a post.

    `components`/`component_data` are the editor's block list and payload
    map. `slug` defaults to one derived from the title.
    """

    user: User | None
    title: str
    short_description: str
    tags: list[str] | str | None
    slug: str | None = None
    thumbnail_key: str | None = None
    components: list[dict[str, Any]] = field(default_factory=list)
    component_data: dict[str, Any] = field(default_factory=dict)
    published: bool = True


@dataclass(frozen=True)
class UpdatePostInput:
    """Full update. `components=None` leaves the blocks untouched."""

    user: User | None
    post_id: UUID
    title: str
    short_description: str
    tags: list[str] | str | None
    thumbnail_key: str | None = None
    components: list[dict[str, Any]] | None = None
    component_data: dict[str, Any] = field(default_factory=dict)
    published: bool | None = None


@dataclass(frozen=True)
class PatchPostInput:
    """Partial metadata update; None means unchanged."""

    user: User | None
    post_id: UUID
    title: str | None = None
    short_description: str | None = None
    tags: list[str] | str | None = None
    thumbnail_key: str | None = None
    clear_thumbnail: bool = False
    published: bool | None = None


@dataclass(frozen=True)
class DeletePostInput:
    user: User | None
    post_id: UUID


@dataclass(frozen=True)
class GetPostInput:
    """Lookup by slug or id; unpublished posts are visible to their owner only."""

    slug: str | None = None
    post_id: UUID | None = None
    viewer: User | None = None


@dataclass(frozen=True)
class ListPostsInput:
    user_id: UUID | None = None


@dataclass(frozen=True)
class ViewPostInput:
    slug: str
    viewer: User | None = None


# --- Output Models ---


@dataclass(frozen=True)
class PostOutput:
    post: Post | None
    blocks: MappedBlocks | None = None
    removed_image_keys: tuple[str, ...] = ()
    errors: list[PostValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class PostListOutput:
    posts: list[Post]
    total: int


@dataclass(frozen=True)
class PostViewOutput:
    post: Post | None
    blocks: MappedBlocks | None = None
    document: RenderedDocument | None = None
    like_count: int = 0
    comment_count: int = 0
    is_liked: bool = False
    errors: list[PostValidationError] = field(default_factory=list)
    success: bool = True
