"""
Short links component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from inkpost.domain.entities import ShortUrl


@dataclass(frozen=True)
class ShortLinkValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ShortenInput:
    url: str | None
    blog_slug: str | None = None


@dataclass(frozen=True)
class ShortLinkOutput:
    """`short_url` is `<origin of the shared url>/s/<code>` on shorten."""

    short_url: str | None = None
    link: ShortUrl | None = None
    errors: list[ShortLinkValidationError] = field(default_factory=list)
    success: bool = True
