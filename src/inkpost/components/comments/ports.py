"""
Comments component port definitions.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from inkpost.domain.entities import BlogComment, TweetComment


class BlogCommentRepoPort(Protocol):
    def add(self, comment: BlogComment) -> BlogComment:
        ...

    def get(self, comment_id: UUID) -> BlogComment | None:
        ...

    def list_for_blog(self, blog_id: UUID) -> list[BlogComment]:
        ...

    def delete(self, comment_id: UUID) -> None:
        ...


class TweetCommentRepoPort(Protocol):
    def add(self, comment: TweetComment) -> TweetComment:
        ...

    def get(self, comment_id: UUID) -> TweetComment | None:
        ...

    def delete(self, comment_id: UUID) -> None:
        ...


# Post or tweet by id (anything with a `user_id`), or None.
ParentLookup = Callable[[UUID], Any]


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        ...
