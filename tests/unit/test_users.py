"""
Tests for profiles: the public page and profile edits.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from inkpost.components.users import (
    USERNAME_TAKEN_MESSAGE,
    GetProfileInput,
    UpdateProfileInput,
    run_get_profile,
    run_update_profile,
)
from inkpost.domain.entities import Tweet
from inkpost.domain.slugs import UsernameTakenError
from inkpost.rules.models import UsersRules
from tests.conftest import FakeRelationRepo


class MemoryUsers:
    def __init__(self, *users) -> None:
        self.items = {u.id: u for u in users}
        self.saved = []

    def get_by_username(self, username):
        return next((u for u in self.items.values() if u.username == username), None)

    def save(self, user):
        self.saved.append(user)
        self.items[user.id] = user
        return user


class RacingUsers(MemoryUsers):
    """Another account claims the username between the check and the write."""

    def save(self, user):
        raise UsernameTakenError(user.username)


class MemoryUserTweets:
    def __init__(self, tweets=()) -> None:
        self.items = list(tweets)

    def _top_level(self, user_id):
        return [
            t
            for t in self.items
            if t.user_id == user_id and t.reply_to_id is None and not t.is_retweet
        ]

    def list_by_user(self, user_id, limit=50):
        return sorted(self._top_level(user_id), key=lambda t: t.created_at, reverse=True)[:limit]

    def count_by_user(self, user_id):
        return len(self._top_level(user_id))


class MemoryCommentCounts:
    def __init__(self, counts=None) -> None:
        self.counts = counts or {}

    def count_by_tweet(self, tweet_ids):
        return {t: self.counts[t] for t in tweet_ids if t in self.counts}


@pytest.fixture
def user_rules() -> UsersRules:
    return UsersRules(profile_tweet_limit=2)


class TestGetProfile:
    def _get(self, users, username, user_rules, viewer=None, follows=None, tweets=None, **kw):
        return run_get_profile(
            GetProfileInput(username=username, viewer=viewer),
            users=users,
            follows=follows or FakeRelationRepo(),
            tweets=tweets or MemoryUserTweets(),
            likes=kw.get("likes") or FakeRelationRepo(),
            comments=kw.get("comments") or MemoryCommentCounts(),
            rules=user_rules,
        )

    def test_unknown_username(self, user_rules) -> None:
        result = self._get(MemoryUsers(), "ghost", user_rules)
        assert not result.success
        assert result.errors[0].code == "not_found"

    def test_counts_and_latest_tweets(self, user_rules, clock, author, other_user) -> None:
        start = clock.now
        tweets = MemoryUserTweets(
            [
                Tweet(user_id=author.id, content="one", created_at=start),
                Tweet(user_id=author.id, content="two", created_at=start + timedelta(minutes=1)),
                Tweet(user_id=author.id, content="three", created_at=start + timedelta(minutes=2)),
                Tweet(user_id=author.id, content="echo", is_retweet=True),
                Tweet(user_id=other_user.id, content="not mine"),
            ]
        )
        follows = FakeRelationRepo()
        follows.pairs = {(other_user.id, author.id)}
        likes = FakeRelationRepo()
        newest = tweets.items[2]
        likes.pairs = {(other_user.id, newest.id)}

        result = self._get(
            MemoryUsers(author, other_user),
            "ada1234",
            user_rules,
            follows=follows,
            tweets=tweets,
            likes=likes,
            comments=MemoryCommentCounts({newest.id: 4}),
        )

        assert result.user.id == author.id
        assert result.follower_count == 1
        assert result.following_count == 0
        assert result.tweet_count == 3
        assert [t.tweet.content for t in result.tweets] == ["three", "two"]
        assert result.tweets[0].like_count == 1
        assert result.tweets[0].comment_count == 4
        assert result.tweets[1].like_count == 0

    def test_follow_flags_relative_to_viewer(self, user_rules, author, other_user) -> None:
        follows = FakeRelationRepo()
        follows.pairs = {(author.id, other_user.id)}
        users = MemoryUsers(author, other_user)

        seen_by_other = self._get(users, "ada1234", user_rules, viewer=other_user, follows=follows)
        seen_by_author = self._get(users, "bob5678", user_rules, viewer=author, follows=follows)
        anonymous = self._get(users, "bob5678", user_rules, follows=follows)

        assert not seen_by_other.is_following
        assert seen_by_other.is_following_back
        assert seen_by_author.is_following
        assert not seen_by_author.is_following_back
        assert not anonymous.is_following
        assert anonymous.follower_count == 1


class TestUpdateProfile:
    def _update(self, users, user_rules, clock, user, **overrides):
        values = dict(user=user, name="Ada L", username="ada_l", bio="Counting engines")
        values.update(overrides)
        return run_update_profile(
            UpdateProfileInput(**values),
            users=users,
            rules=user_rules,
            time_port=clock,
            image_origin="https://img.example",
        )

    def test_success(self, user_rules, clock, author) -> None:
        users = MemoryUsers(author)
        clock.advance(60)
        result = self._update(users, user_rules, clock, author, profile_image_key="avatars/a.png")

        assert result.success
        assert result.user.username == "ada_l"
        assert result.user.bio == "Counting engines"
        assert result.user.image == "https://img.example/avatars/a.png"
        assert result.user.updated_at == clock.now
        assert users.items[author.id].name == "Ada L"

    def test_requires_user(self, user_rules, clock) -> None:
        result = self._update(MemoryUsers(), user_rules, clock, None)
        assert result.errors[0].code == "auth_required"

    @pytest.mark.parametrize(
        ("overrides", "field", "message"),
        [
            ({"name": "  "}, "name", "Name is required"),
            ({"name": "x" * 51}, "name", "Name is too long"),
            ({"username": "ab"}, "username", "Username must be at least 3 characters"),
            ({"username": "a" * 21}, "username", "Username is too long"),
            (
                {"username": "Ada-L"},
                "username",
                "Username can only contain lowercase letters, numbers, and underscores",
            ),
            ({"bio": "b" * 161}, "bio", "Bio is too long"),
        ],
    )
    def test_limits(self, user_rules, clock, author, overrides, field, message) -> None:
        users = MemoryUsers(author)
        result = self._update(users, user_rules, clock, author, **overrides)
        assert result.errors[0].field == field
        assert result.errors[0].message == message
        assert users.saved == []

    def test_empty_bio_cleared(self, user_rules, clock, author) -> None:
        result = self._update(MemoryUsers(author), user_rules, clock, author, bio="")
        assert result.user.bio is None

    def test_keeping_own_username(self, user_rules, clock, author) -> None:
        result = self._update(MemoryUsers(author), user_rules, clock, author, username="ada1234")
        assert result.success

    def test_username_of_another_account(self, user_rules, clock, author, other_user) -> None:
        users = MemoryUsers(author, other_user)
        result = self._update(users, user_rules, clock, author, username="bob5678")
        assert result.errors[0].message == USERNAME_TAKEN_MESSAGE
        assert users.saved == []

    def test_username_claimed_during_write(self, user_rules, clock, author) -> None:
        result = self._update(RacingUsers(author), user_rules, clock, author)
        assert result.errors[0].code == "validation"
        assert result.errors[0].message == USERNAME_TAKEN_MESSAGE
