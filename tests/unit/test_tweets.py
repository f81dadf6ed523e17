"""
Tests for tweets and the feed.
"""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from inkpost.components.tweets import (
    CreateTweetInput,
    DeleteTweetInput,
    UpdateTweetInput,
    run_create,
    run_delete,
    run_feed,
    run_update,
)
from inkpost.domain.entities import TweetComment
from inkpost.rules.models import TweetsRules
from tests.conftest import FakeImageStore, FakeRelationRepo


class MemoryTweets:
    def __init__(self) -> None:
        self.items = {}

    def save(self, tweet):
        self.items[tweet.id] = tweet
        return tweet

    def get(self, tweet_id):
        return self.items.get(tweet_id)

    def feed(self, limit=50):
        top = [t for t in self.items.values() if t.reply_to_id is None]
        return sorted(top, key=lambda t: t.created_at, reverse=True)[:limit]

    def delete(self, tweet_id):
        self.items.pop(tweet_id, None)


class MemoryThreads:
    def __init__(self) -> None:
        self.comments: list[TweetComment] = []

    def list_for_tweet(self, tweet_id):
        return [c for c in self.comments if c.tweet_id == tweet_id]


@pytest.fixture
def repo() -> MemoryTweets:
    return MemoryTweets()


@pytest.fixture
def tweet_rules() -> TweetsRules:
    return TweetsRules(max_length=10, feed_limit=2)


def _create(repo, rules, clock, user, **kwargs):
    return run_create(CreateTweetInput(user=user, **kwargs), repo=repo, rules=rules, time_port=clock)


class TestCreate:
    def test_text_trimmed(self, repo, tweet_rules, clock, author) -> None:
        result = _create(repo, tweet_rules, clock, author, content="  hello  ")
        assert result.tweet.content == "hello"
        assert result.tweet.user_id == author.id

    def test_image_only(self, repo, tweet_rules, clock, author) -> None:
        result = _create(repo, tweet_rules, clock, author, image_keys=("a.png", ""))
        assert result.success
        assert result.tweet.image_keys == ["a.png"]

    def test_empty_rejected(self, repo, tweet_rules, clock, author) -> None:
        result = _create(repo, tweet_rules, clock, author, content="   ")
        assert result.errors[0].message == "Content or image is required"

    def test_too_long(self, repo, tweet_rules, clock, author) -> None:
        result = _create(repo, tweet_rules, clock, author, content="x" * 11)
        assert result.errors[0].message == "Content must be 10 characters or less"
        assert repo.items == {}

    def test_reply_to_unknown(self, repo, tweet_rules, clock, author) -> None:
        result = _create(repo, tweet_rules, clock, author, content="re", reply_to_id=uuid4())
        assert result.errors[0].code == "not_found"

    def test_requires_user(self, repo, tweet_rules, clock) -> None:
        assert _create(repo, tweet_rules, clock, None, content="x").errors[0].code == (
            "auth_required"
        )


class TestUpdate:
    def test_author_edits(self, repo, tweet_rules, policy, clock, author) -> None:
        tweet = _create(repo, tweet_rules, clock, author, content="old").tweet
        clock.advance(30)
        result = run_update(
            UpdateTweetInput(user=author, tweet_id=tweet.id, content=" new "),
            repo=repo,
            rules=tweet_rules,
            policy=policy,
            time_port=clock,
        )
        assert result.tweet.content == "new"
        assert result.tweet.updated_at == clock.now
        assert result.tweet.created_at == clock.now - timedelta(seconds=30)

    def test_admin_cannot_edit(self, repo, tweet_rules, policy, clock, author, admin_user) -> None:
        tweet = _create(repo, tweet_rules, clock, author, content="old").tweet
        result = run_update(
            UpdateTweetInput(user=admin_user, tweet_id=tweet.id, content="new"),
            repo=repo,
            rules=tweet_rules,
            policy=policy,
            time_port=clock,
        )
        assert result.errors[0].code == "forbidden"
        assert repo.get(tweet.id).content == "old"

    def test_empty_content(self, repo, tweet_rules, policy, clock, author) -> None:
        result = run_update(
            UpdateTweetInput(user=author, tweet_id=uuid4(), content=""),
            repo=repo,
            rules=tweet_rules,
            policy=policy,
            time_port=clock,
        )
        assert result.errors[0].message == "Content is required"


class TestDelete:
    def test_author_deletes_with_images(self, repo, tweet_rules, policy, clock, author) -> None:
        tweet = _create(repo, tweet_rules, clock, author, image_keys=("a.png", "b.png")).tweet
        images = FakeImageStore(fail_on={"a.png"})

        result = run_delete(
            DeleteTweetInput(user=author, tweet_id=tweet.id), repo=repo, policy=policy, images=images
        )

        assert result.success
        assert result.removed_image_keys == ("a.png", "b.png")
        assert images.deleted == ["b.png"]
        assert repo.get(tweet.id) is None

    def test_admin_may_delete(self, repo, tweet_rules, policy, clock, author, admin_user) -> None:
        tweet = _create(repo, tweet_rules, clock, author, content="x").tweet
        result = run_delete(DeleteTweetInput(user=admin_user, tweet_id=tweet.id), repo=repo, policy=policy)
        assert result.success

    def test_other_user_forbidden(self, repo, tweet_rules, policy, clock, author, other_user) -> None:
        tweet = _create(repo, tweet_rules, clock, author, content="x").tweet
        result = run_delete(DeleteTweetInput(user=other_user, tweet_id=tweet.id), repo=repo, policy=policy)
        assert result.errors[0].code == "forbidden"
        assert repo.get(tweet.id) is not None


class TestFeed:
    def test_newest_first_with_counts(self, repo, tweet_rules, clock, author, other_user) -> None:
        likes, retweets, comment_likes = FakeRelationRepo(), FakeRelationRepo(), FakeRelationRepo()
        threads = MemoryThreads()

        old = _create(repo, tweet_rules, clock, author, content="old").tweet
        clock.advance(1)
        middle = _create(repo, tweet_rules, clock, author, content="middle").tweet
        clock.advance(1)
        new = _create(repo, tweet_rules, clock, other_user, content="new").tweet
        _create(repo, tweet_rules, clock, author, content="reply", reply_to_id=new.id)

        likes.add(author.id, new.id, uuid4(), clock.now)
        retweets.add(author.id, new.id, uuid4(), clock.now)
        comment = TweetComment(tweet_id=new.id, user_id=author.id, content="c")
        threads.comments.append(comment)
        comment_likes.add(other_user.id, comment.id, uuid4(), clock.now)

        feed = run_feed(
            author,
            repo=repo,
            rules=tweet_rules,
            likes=likes,
            retweets=retweets,
            comments=threads,
            comment_likes=comment_likes,
        )

        assert [i.tweet.id for i in feed.items] == [new.id, middle.id]
        assert old.id not in {i.tweet.id for i in feed.items}
        top = feed.items[0]
        assert (top.like_count, top.retweet_count, top.comment_count) == (1, 1, 1)
        assert top.is_liked
        assert top.comments[0].like_count == 1
        assert not top.comments[0].is_liked
        assert feed.items[1].comments == ()

    def test_empty_feed(self, repo, tweet_rules) -> None:
        relations = FakeRelationRepo()
        feed = run_feed(
            None,
            repo=repo,
            rules=tweet_rules,
            likes=relations,
            retweets=relations,
            comments=MemoryThreads(),
            comment_likes=relations,
        )
        assert feed.items == []
