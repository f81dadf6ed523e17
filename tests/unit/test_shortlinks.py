"""
Tests for shortening and resolving share links.
"""

from __future__ import annotations

import logging

import pytest

from inkpost.components.shortlinks import (
    ShortenInput,
    random_code,
    run_resolve,
    run_shorten,
    url_origin,
)
from inkpost.rules.models import ShortLinksRules


class MemoryShortUrls:
    def __init__(self) -> None:
        self.by_code = {}

    def insert(self, short_url) -> bool:
        if short_url.short_code in self.by_code:
            return False
        self.by_code[short_url.short_code] = short_url
        return True

    def get_by_code(self, code):
        return self.by_code.get(code)

    def get_by_blog_slug(self, blog_slug):
        return next((s for s in self.by_code.values() if s.blog_slug == blog_slug), None)

    def increment_clicks(self, code):
        link = self.by_code.get(code)
        if link is None:
            return None
        link = link.model_copy(update={"clicks": link.clicks + 1})
        self.by_code[code] = link
        return link


def _codes(*codes: str):
    queue = list(codes)
    return lambda alphabet, length: queue.pop(0)


@pytest.fixture
def repo() -> MemoryShortUrls:
    return MemoryShortUrls()


@pytest.fixture
def link_rules() -> ShortLinksRules:
    return ShortLinksRules(max_attempts=3)


class TestShorten:
    def test_short_url_uses_request_origin(self, repo, link_rules, clock) -> None:
        result = run_shorten(
            ShortenInput(url="https://blog.test/blogs/hello?x=1", blog_slug="hello"),
            repo=repo,
            rules=link_rules,
            time_port=clock,
            generate=_codes("abc123"),
        )
        assert result.short_url == "https://blog.test/s/abc123"
        assert result.link.original_url == "https://blog.test/blogs/hello?x=1"
        assert result.link.blog_slug == "hello"

    def test_same_post_reuses_code(self, repo, link_rules, clock) -> None:
        inp = ShortenInput(url="https://blog.test/blogs/hello", blog_slug="hello")
        first = run_shorten(inp, repo=repo, rules=link_rules, time_port=clock, generate=_codes("aaa"))
        second = run_shorten(inp, repo=repo, rules=link_rules, time_port=clock, generate=_codes("bbb"))
        assert first.short_url == second.short_url
        assert len(repo.by_code) == 1

    def test_collision_retries(self, repo, link_rules, clock) -> None:
        run_shorten(
            ShortenInput(url="https://a.test/1"),
            repo=repo,
            rules=link_rules,
            time_port=clock,
            generate=_codes("dup"),
        )
        result = run_shorten(
            ShortenInput(url="https://a.test/2"),
            repo=repo,
            rules=link_rules,
            time_port=clock,
            generate=_codes("dup", "dup", "fresh"),
        )
        assert result.link.short_code == "fresh"

    def test_gives_up_after_max_attempts(self, repo, link_rules, clock, caplog) -> None:
        run_shorten(
            ShortenInput(url="https://a.test/1"),
            repo=repo,
            rules=link_rules,
            time_port=clock,
            generate=_codes("dup"),
        )
        with caplog.at_level(logging.ERROR):
            result = run_shorten(
                ShortenInput(url="https://a.test/2"),
                repo=repo,
                rules=link_rules,
                time_port=clock,
                generate=lambda alphabet, length: "dup",
            )
        assert result.errors[0].code == "generation_failed"
        assert result.errors[0].message == "Failed to generate unique short code"
        assert "No free short code after 3 attempts" in caplog.text

    @pytest.mark.parametrize("url", ["", "   ", "/relative/path", "ftp://host/file"])
    def test_invalid_urls(self, repo, link_rules, clock, url) -> None:
        result = run_shorten(ShortenInput(url=url), repo=repo, rules=link_rules, time_port=clock)
        assert result.errors[0].code == "validation"


class TestResolve:
    def test_counts_clicks(self, repo, link_rules, clock) -> None:
        run_shorten(
            ShortenInput(url="https://a.test/post"),
            repo=repo,
            rules=link_rules,
            time_port=clock,
            generate=_codes("xyz"),
        )
        run_resolve("xyz", repo=repo)
        result = run_resolve("xyz", repo=repo)
        assert result.link.original_url == "https://a.test/post"
        assert result.link.clicks == 2

    def test_unknown_code(self, repo) -> None:
        assert run_resolve("nope", repo=repo).errors[0].code == "not_found"

    def test_missing_code(self, repo) -> None:
        assert run_resolve("", repo=repo).errors[0].code == "validation"


def test_random_code_alphabet_and_length() -> None:
    code = random_code("ab", 12)
    assert len(code) == 12
    assert set(code) <= {"a", "b"}


def test_url_origin() -> None:
    assert url_origin("http://localhost:3000/blogs/x") == "http://localhost:3000"
    assert url_origin("mailto:x@example.com") is None
