"""
Tests for the rate limiter, startup configuration checks and event slot.
"""

from __future__ import annotations

import logging

import pytest

from inkpost.adapters import events
from inkpost.app_shell.config import missing_env, validate_ops_rules
from inkpost.app_shell.rate_limit import RateLimiter
from inkpost.rules.models import RateLimitRules, RateLimitWindow


class TestRateLimiter:
    def test_image_delete_limit(self, rules, clock) -> None:
        limiter = RateLimiter(rules.rate_limits, clock)
        assert all(limiter.check_image_delete("u1") for _ in range(10))
        assert not limiter.check_image_delete("u1")
        assert limiter.check_image_delete("u2")

    def test_window_slides(self, clock) -> None:
        limiter = RateLimiter(
            RateLimitRules(image_delete=RateLimitWindow(window_seconds=60, max_requests=2)), clock
        )
        assert limiter.check_image_delete("u")
        clock.advance(30)
        assert limiter.check_image_delete("u")
        assert not limiter.check_image_delete("u")
        clock.advance(31)
        assert limiter.check_image_delete("u")

    def test_default_limit_when_unset(self, clock) -> None:
        limiter = RateLimiter(
            RateLimitRules(image_delete=RateLimitWindow(window_seconds=60)), clock
        )
        assert sum(limiter.check_image_delete("u") for _ in range(12)) == 10

    def test_zero_limit_denies(self, rules, clock) -> None:
        assert not RateLimiter(rules.rate_limits, clock).allow_request("k", 60, 0)


class TestOpsConfig:
    def test_missing_env(self, rules) -> None:
        rules.ops.required_env = ["INKPOST_SECRET_KEY", "S3_BUCKET"]
        assert missing_env(rules, {"INKPOST_SECRET_KEY": "x", "S3_BUCKET": ""}) == ["S3_BUCKET"]

    def test_validate_raises(self, rules) -> None:
        rules.ops.required_env = ["INKPOST_SECRET_KEY"]
        with pytest.raises(RuntimeError, match="INKPOST_SECRET_KEY"):
            validate_ops_rules(rules, {})

    def test_validate_logs(self, rules, caplog) -> None:
        with caplog.at_level(logging.INFO):
            validate_ops_rules(rules, {})
        assert "Configuration validated" in caplog.text


class TestEvents:
    @pytest.fixture(autouse=True)
    def reset_publisher(self):
        yield
        events.set_publisher(None)

    def test_no_publisher_is_noop(self) -> None:
        assert events.emit("newTweet", {}) is False

    def test_publisher_receives_events(self) -> None:
        received = []
        events.set_publisher(lambda event, payload: received.append((event, payload)))
        assert events.emit("deleteTweet", {"tweetId": "t1"})
        assert received == [("deleteTweet", {"tweetId": "t1"})]
        assert events.get_publisher() is not None

    def test_publisher_failure_is_logged(self, caplog) -> None:
        def broken(event, payload):
            raise ConnectionError("socket closed")

        events.set_publisher(broken)
        with caplog.at_level(logging.WARNING):
            assert events.emit("likeTweet", {}) is False
        assert "socket closed" in caplog.text
