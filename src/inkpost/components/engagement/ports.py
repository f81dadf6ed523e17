"""
Engagement component port definitions.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID


class RelationRepoPort(Protocol):
    """A table of unique (actor, target) pairs: likes, follows, retweets."""

    def exists(self, actor_id: UUID, target_id: UUID) -> bool:
        ...

    def add(self, actor_id: UUID, target_id: UUID, relation_id: UUID, created_at: datetime) -> bool:
        """Insert the pair. False if it already exists (unique constraint)."""
        ...

    def remove(self, actor_id: UUID, target_id: UUID) -> bool:
        ...

    def count(self, target_id: UUID) -> int:
        ...

    def count_many(self, target_ids: Sequence[UUID]) -> dict[UUID, int]:
        ...

    def targets_of(self, actor_id: UUID, target_ids: Sequence[UUID]) -> set[UUID]:
        ...


# Returns the target (post, tweet, comment, user) or None when it does not exist.
TargetLookup = Callable[[UUID], Any]


class CommentCountPort(Protocol):
    def count_by_blog(self, blog_ids: Sequence[UUID]) -> dict[UUID, int]:
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        ...
