"""
Users component port definitions.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from inkpost.domain.entities import Tweet, User


class UserRepoPort(Protocol):
    def get_by_username(self, username: str) -> User | None:
        ...

    def save(self, user: User) -> User:
        """Raises UsernameTakenError when another account holds the username."""
        ...


class FollowPort(Protocol):
    def exists(self, actor_id: UUID, target_id: UUID) -> bool:
        ...

    def count(self, target_id: UUID) -> int:
        ...

    def count_by_actor(self, actor_id: UUID) -> int:
        ...


class UserTweetsPort(Protocol):
    def list_by_user(self, user_id: UUID, limit: int = 50) -> list[Tweet]:
        ...

    def count_by_user(self, user_id: UUID) -> int:
        ...


class LikeCountPort(Protocol):
    def count_many(self, target_ids: Sequence[UUID]) -> dict[UUID, int]:
        ...


class CommentCountPort(Protocol):
    def count_by_tweet(self, tweet_ids: Sequence[UUID]) -> dict[UUID, int]:
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        ...
