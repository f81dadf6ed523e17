"""
Short links component port definitions.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from inkpost.domain.entities import ShortUrl


class ShortUrlRepoPort(Protocol):
    def insert(self, short_url: ShortUrl) -> bool:
        """False if the short code is already taken."""
        ...

    def get_by_code(self, code: str) -> ShortUrl | None:
        ...

    def get_by_blog_slug(self, blog_slug: str) -> ShortUrl | None:
        ...

    def increment_clicks(self, code: str) -> ShortUrl | None:
        ...


# (alphabet, length) -> random code
CodeGenerator = Callable[[str, int], str]


class TimePort(Protocol):
    def now_utc(self) -> datetime:
        ...
