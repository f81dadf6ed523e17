"""
Short links component - share links of the form <origin>/s/<code>.

One code per post: shortening a post that already has a code returns
the existing one. New codes are random; a collision draws a new code up
to `short_links.max_attempts` times.
"""

from __future__ import annotations

import logging
import secrets
from urllib.parse import urlsplit

from inkpost.domain.entities import ShortUrl
from inkpost.rules.models import ShortLinksRules

from .models import ShortenInput, ShortLinkOutput, ShortLinkValidationError
from .ports import CodeGenerator, ShortUrlRepoPort, TimePort

logger = logging.getLogger(__name__)


def random_code(alphabet: str, length: int) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _fail(code: str, message: str, field: str | None = None) -> ShortLinkOutput:
    return ShortLinkOutput(errors=[ShortLinkValidationError(code, message, field)], success=False)


def url_origin(url: str) -> str | None:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def run_shorten(
    inp: ShortenInput,
    *,
    repo: ShortUrlRepoPort,
    rules: ShortLinksRules,
    time_port: TimePort,
    generate: CodeGenerator = random_code,
) -> ShortLinkOutput:
    url = (inp.url or "").strip()
    if not url:
        return _fail("validation", "URL is required", "url")
    origin = url_origin(url)
    if origin is None:
        return _fail("validation", "URL must be an absolute http(s) URL", "url")

    blog_slug = inp.blog_slug or None
    if blog_slug:
        existing = repo.get_by_blog_slug(blog_slug)
        if existing is not None:
            return ShortLinkOutput(short_url=f"{origin}/s/{existing.short_code}", link=existing)

    for _ in range(rules.max_attempts):
        link = ShortUrl(
            short_code=generate(rules.alphabet, rules.code_length),
            original_url=url,
            blog_slug=blog_slug,
            created_at=time_port.now_utc(),
        )
        if repo.insert(link):
            return ShortLinkOutput(short_url=f"{origin}/s/{link.short_code}", link=link)

    logger.error("No free short code after %d attempts", rules.max_attempts)
    return _fail("generation_failed", "Failed to generate unique short code")


def run_resolve(code: str | None, *, repo: ShortUrlRepoPort) -> ShortLinkOutput:
    """Count a click and return the link with its updated click count."""
    if not code:
        return _fail("validation", "Short code is required", "code")
    link = repo.increment_clicks(code)
    if link is None:
        return _fail("not_found", "Short URL not found")
    return ShortLinkOutput(link=link)
