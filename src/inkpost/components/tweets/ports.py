"""
Tweets component port definitions.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

from inkpost.domain.entities import Tweet, TweetComment


class TweetRepoPort(Protocol):
    def save(self, tweet: Tweet) -> Tweet:
        ...

    def get(self, tweet_id: UUID) -> Tweet | None:
        ...

    def feed(self, limit: int = 50) -> list[Tweet]:
        ...

    def delete(self, tweet_id: UUID) -> None:
        ...


class TweetCommentListPort(Protocol):
    def list_for_tweet(self, tweet_id: UUID) -> list[TweetComment]:
        ...


class CountPort(Protocol):
    """Read side of a relation table (likes, retweets)."""

    def count_many(self, target_ids: Sequence[UUID]) -> dict[UUID, int]:
        ...

    def targets_of(self, actor_id: UUID, target_ids: Sequence[UUID]) -> set[UUID]:
        ...


class ImageStorePort(Protocol):
    def delete(self, key: str) -> None:
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        ...
