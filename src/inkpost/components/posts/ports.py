"""
Posts component port definitions.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from inkpost.domain.entities import Post, StorageRow


class PostRepoPort(Protocol):
    """Repository interface for posts and their block rows."""

    def create(self, post: Post, rows: Sequence[StorageRow]) -> Post:
        """Insert post and rows atomically."""
        ...

    def apply_update(
        self,
        post: Post,
        *,
        to_update: Iterable[StorageRow] = (),
        to_insert: Iterable[StorageRow] = (),
        to_delete: Iterable[StorageRow] = (),
    ) -> Post:
        """Write metadata and a block diff atomically."""
        ...

    def save_metadata(self, post: Post) -> Post:
        ...

    def get_by_id(self, post_id: UUID) -> Post | None:
        ...

    def get_by_slug(self, slug: str) -> Post | None:
        ...

    def slug_exists(self, slug: str, exclude_id: UUID | None = None) -> bool:
        ...

    def list(self, user_id: UUID | None = None, published_only: bool = True) -> list[Post]:
        ...

    def get_rows(self, post_id: UUID) -> list[StorageRow]:
        ...

    def delete(self, post_id: UUID) -> None:
        """Delete the post and all of its block rows."""
        ...


class LikeCountPort(Protocol):
    def count(self, target_id: UUID) -> int:
        ...

    def exists(self, actor_id: UUID, target_id: UUID) -> bool:
        ...


class CommentCountPort(Protocol):
    def count_by_blog(self, blog_ids: Sequence[UUID]) -> dict[UUID, int]:
        ...


class ImageStorePort(Protocol):
    def delete(self, key: str) -> None:
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        ...
