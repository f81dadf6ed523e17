"""
Tweets component - short posts with optional images.

- A tweet needs text or at least one image; text is trimmed and limited
  to `tweets.max_length` characters
- Only the author may edit; the author or an admin may delete
- Deleting a tweet deletes its images best-effort
"""

from __future__ import annotations

from inkpost.components.images import delete_images
from inkpost.domain.entities import Tweet, User
from inkpost.domain.policy import PolicyEngine
from inkpost.rules.models import TweetsRules

from .models import (
    CreateTweetInput,
    DeleteTweetInput,
    FeedComment,
    FeedItem,
    FeedOutput,
    TweetOutput,
    TweetValidationError,
    UpdateTweetInput,
)
from .ports import CountPort, ImageStorePort, TimePort, TweetCommentListPort, TweetRepoPort


def _fail(code: str, message: str, field: str | None = None) -> TweetOutput:
    return TweetOutput(errors=[TweetValidationError(code, message, field)], success=False)


def _too_long(content: str, rules: TweetsRules) -> TweetOutput | None:
    if len(content) > rules.max_length:
        return _fail(
            "validation", f"Content must be {rules.max_length} characters or less", "content"
        )
    return None


def run_create(
    inp: CreateTweetInput,
    *,
    repo: TweetRepoPort,
    rules: TweetsRules,
    time_port: TimePort,
) -> TweetOutput:
    if inp.user is None:
        return _fail("auth_required", "Unauthorized")

    content = (inp.content or "").strip()
    image_keys = [k for k in inp.image_keys if k]
    if not content and not image_keys:
        return _fail("validation", "Content or image is required", "content")
    too_long = _too_long(content, rules)
    if too_long is not None:
        return too_long
    if inp.reply_to_id is not None and repo.get(inp.reply_to_id) is None:
        return _fail("not_found", "Tweet not found", "reply_to_id")

    now = time_port.now_utc()
    tweet = Tweet(
        user_id=inp.user.id,
        content=content,
        image_keys=image_keys,
        reply_to_id=inp.reply_to_id,
        created_at=now,
        updated_at=now,
    )
    return TweetOutput(tweet=repo.save(tweet))


def run_update(
    inp: UpdateTweetInput,
    *,
    repo: TweetRepoPort,
    rules: TweetsRules,
    policy: PolicyEngine,
    time_port: TimePort,
) -> TweetOutput:
    """Author-only content edit; images are left alone."""
    if inp.user is None:
        return _fail("auth_required", "Unauthorized")
    content = (inp.content or "").strip()
    if not content:
        return _fail("validation", "Content is required", "content")
    too_long = _too_long(content, rules)
    if too_long is not None:
        return too_long

    tweet = repo.get(inp.tweet_id)
    if tweet is None:
        return _fail("not_found", "Tweet not found")
    if not policy.can_edit_tweet(inp.user, tweet):
        return _fail("forbidden", "Forbidden")

    updated = tweet.model_copy(update={"content": content, "updated_at": time_port.now_utc()})
    return TweetOutput(tweet=repo.save(updated))


def run_delete(
    inp: DeleteTweetInput,
    *,
    repo: TweetRepoPort,
    policy: PolicyEngine,
    images: ImageStorePort | None = None,
) -> TweetOutput:
    if inp.user is None:
        return _fail("auth_required", "Unauthorized")
    tweet = repo.get(inp.tweet_id)
    if tweet is None:
        return _fail("not_found", "Tweet not found")
    if not policy.can_delete_tweet(inp.user, tweet):
        return _fail("forbidden", "Forbidden")

    removed = tuple(tweet.image_keys)
    delete_images(removed, images)
    repo.delete(tweet.id)
    return TweetOutput(tweet=tweet, removed_image_keys=removed)


def run_feed(
    viewer: User | None,
    *,
    repo: TweetRepoPort,
    rules: TweetsRules,
    likes: CountPort,
    retweets: CountPort,
    comments: TweetCommentListPort,
    comment_likes: CountPort,
) -> FeedOutput:
    """
    Latest top-level tweets, newest first, each with its comments (oldest
    first) and like state for the viewer.
    """
    tweets = repo.feed(rules.feed_limit)
    if not tweets:
        return FeedOutput()

    ids = [t.id for t in tweets]
    like_counts = likes.count_many(ids)
    retweet_counts = retweets.count_many(ids)
    liked = likes.targets_of(viewer.id, ids) if viewer is not None else set()

    items = []
    for tweet in tweets:
        thread = comments.list_for_tweet(tweet.id)
        comment_ids = [c.id for c in thread]
        comment_like_counts = comment_likes.count_many(comment_ids) if comment_ids else {}
        liked_comments = (
            comment_likes.targets_of(viewer.id, comment_ids)
            if viewer is not None and comment_ids
            else set()
        )
        items.append(
            FeedItem(
                tweet=tweet,
                like_count=like_counts.get(tweet.id, 0),
                comment_count=len(thread),
                retweet_count=retweet_counts.get(tweet.id, 0),
                is_liked=tweet.id in liked,
                comments=tuple(
                    FeedComment(
                        comment=c,
                        like_count=comment_like_counts.get(c.id, 0),
                        is_liked=c.id in liked_comments,
                    )
                    for c in thread
                ),
            )
        )
    return FeedOutput(items=items)
