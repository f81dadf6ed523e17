"""
Tweet feed routes.

Every successful write is also published through the realtime event slot
(newTweet, updateTweet, deleteTweet, likeTweet, newComment, deleteComment).
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from inkpost.adapters import events
from inkpost.adapters.clock import SystemClock
from inkpost.adapters.sqlite.repos import (
    SQLiteRelationRepo,
    SQLiteTweetCommentRepo,
    SQLiteTweetRepo,
)
from inkpost.api.deps import (
    get_clock,
    get_comment_like_repo,
    get_current_user,
    get_image_store,
    get_optional_user,
    get_policy,
    get_retweet_repo,
    get_rules,
    get_tweet_comment_repo,
    get_tweet_like_repo,
    get_tweet_repo,
)
from inkpost.api.errors import raise_for_errors
from inkpost.api.schemas import (
    MessageResponse,
    RetweetResponse,
    TweetCommentCreated,
    TweetCommentRequest,
    TweetCommentResponse,
    TweetCreateRequest,
    TweetEnvelope,
    TweetLikeResponse,
    TweetListResponse,
    TweetResponse,
    TweetTargetRequest,
    TweetUpdateRequest,
)
from inkpost.components.comments import (
    AddCommentInput,
    DeleteCommentInput,
    run_add_tweet_comment,
    run_delete_tweet_comment,
)
from inkpost.components.engagement import ToggleInput, toggle_retweet, toggle_tweet_like
from inkpost.components.images import ImageStorePort
from inkpost.components.mapper import resolve_image_url
from inkpost.components.tweets import (
    CreateTweetInput,
    DeleteTweetInput,
    FeedItem,
    UpdateTweetInput,
    run_create,
    run_delete,
    run_feed,
    run_update,
)
from inkpost.domain.entities import Tweet, TweetComment, User
from inkpost.domain.policy import PolicyEngine
from inkpost.rules.models import Rules

router = APIRouter()


def _tweet(tweet: Tweet, rules: Rules, item: FeedItem | None = None) -> TweetResponse:
    origin = rules.images.public_origin
    data = tweet.model_dump()
    data["image_urls"] = [url for k in tweet.image_keys if (url := resolve_image_url(origin, k))]
    if item is not None:
        data.update(
            like_count=item.like_count,
            comment_count=item.comment_count,
            retweet_count=item.retweet_count,
            is_liked=item.is_liked,
            comments=[
                _comment(c.comment, like_count=c.like_count, is_liked=c.is_liked)
                for c in item.comments
            ],
        )
    return TweetResponse.model_validate(data)


def _comment(
    comment: TweetComment, *, like_count: int = 0, is_liked: bool = False
) -> TweetCommentResponse:
    return TweetCommentResponse.model_validate(
        {**comment.model_dump(), "like_count": like_count, "is_liked": is_liked}
    )


def _require_id(value: UUID | None, message: str) -> UUID:
    if value is None:
        raise HTTPException(status_code=400, detail=message)
    return value


# --- Feed and tweet CRUD ---


@router.get("", response_model=TweetListResponse)
def list_tweets(
    viewer: User | None = Depends(get_optional_user),
    repo: SQLiteTweetRepo = Depends(get_tweet_repo),
    rules: Rules = Depends(get_rules),
    likes: SQLiteRelationRepo = Depends(get_tweet_like_repo),
    retweets: SQLiteRelationRepo = Depends(get_retweet_repo),
    comments: SQLiteTweetCommentRepo = Depends(get_tweet_comment_repo),
    comment_likes: SQLiteRelationRepo = Depends(get_comment_like_repo),
) -> TweetListResponse:
    feed = run_feed(
        viewer,
        repo=repo,
        rules=rules.tweets,
        likes=likes,
        retweets=retweets,
        comments=comments,
        comment_likes=comment_likes,
    )
    return TweetListResponse(tweets=[_tweet(item.tweet, rules, item) for item in feed.items])


@router.post("", response_model=TweetEnvelope, status_code=201)
def create_tweet(
    req: TweetCreateRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteTweetRepo = Depends(get_tweet_repo),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> TweetEnvelope:
    result = run_create(
        CreateTweetInput(
            user=current_user,
            content=req.content,
            image_keys=tuple(req.image_keys),
            reply_to_id=req.reply_to_id,
        ),
        repo=repo,
        rules=rules.tweets,
        time_port=clock,
    )
    if not result.success or result.tweet is None:
        raise_for_errors(result.errors)

    body = _tweet(result.tweet, rules)
    events.emit("newTweet", body.model_dump(mode="json", by_alias=True))
    return TweetEnvelope(tweet=body)


@router.put("", response_model=TweetEnvelope)
def update_tweet(
    req: TweetUpdateRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteTweetRepo = Depends(get_tweet_repo),
    rules: Rules = Depends(get_rules),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
) -> TweetEnvelope:
    tweet_id = _require_id(req.tweet_id, "Tweet ID is required")
    result = run_update(
        UpdateTweetInput(user=current_user, tweet_id=tweet_id, content=req.content),
        repo=repo,
        rules=rules.tweets,
        policy=policy,
        time_port=clock,
    )
    if not result.success or result.tweet is None:
        raise_for_errors(result.errors)

    events.emit("updateTweet", {"tweetId": str(tweet_id), "content": result.tweet.content})
    return TweetEnvelope(tweet=_tweet(result.tweet, rules))


@router.delete("", response_model=MessageResponse)
def delete_tweet(
    tweet_id: UUID | None = Query(default=None, alias="tweetId"),
    current_user: User = Depends(get_current_user),
    repo: SQLiteTweetRepo = Depends(get_tweet_repo),
    policy: PolicyEngine = Depends(get_policy),
    images: ImageStorePort = Depends(get_image_store),
) -> MessageResponse:
    tweet_id = _require_id(tweet_id, "Tweet ID is required")
    result = run_delete(
        DeleteTweetInput(user=current_user, tweet_id=tweet_id),
        repo=repo,
        policy=policy,
        images=images,
    )
    if not result.success:
        raise_for_errors(result.errors)

    events.emit("deleteTweet", {"tweetId": str(tweet_id)})
    return MessageResponse(message="Tweet deleted successfully")


# --- Likes and retweets ---


@router.post("/like", response_model=TweetLikeResponse)
def like_tweet(
    req: TweetTargetRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteTweetRepo = Depends(get_tweet_repo),
    likes: SQLiteRelationRepo = Depends(get_tweet_like_repo),
    clock: SystemClock = Depends(get_clock),
) -> TweetLikeResponse:
    tweet_id = _require_id(req.tweet_id, "Tweet ID is required")
    result = toggle_tweet_like(
        ToggleInput(user=current_user, target_id=tweet_id),
        likes=likes,
        lookup=repo.get,
        time_port=clock,
    )
    if not result.success:
        raise_for_errors(result.errors)

    events.emit(
        "likeTweet",
        {"tweetId": str(tweet_id), "likes": result.count, "userId": str(current_user.id)},
    )
    return TweetLikeResponse(
        message="Tweet liked" if result.active else "Tweet unliked",
        liked=result.active,
        like_count=result.count,
    )


@router.post("/retweet", response_model=RetweetResponse)
def retweet(
    req: TweetTargetRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteTweetRepo = Depends(get_tweet_repo),
    retweets: SQLiteRelationRepo = Depends(get_retweet_repo),
    clock: SystemClock = Depends(get_clock),
) -> RetweetResponse:
    tweet_id = _require_id(req.tweet_id, "Tweet ID is required")
    result = toggle_retweet(
        ToggleInput(user=current_user, target_id=tweet_id),
        retweets=retweets,
        lookup=repo.get,
        time_port=clock,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return RetweetResponse(
        message="Retweeted" if result.active else "Retweet removed",
        retweeted=result.active,
        retweet_count=result.count,
    )


# --- Comments ---


@router.post("/comment", response_model=TweetCommentCreated, status_code=201)
def add_comment(
    req: TweetCommentRequest,
    current_user: User = Depends(get_current_user),
    repo: SQLiteTweetRepo = Depends(get_tweet_repo),
    comments: SQLiteTweetCommentRepo = Depends(get_tweet_comment_repo),
    clock: SystemClock = Depends(get_clock),
) -> TweetCommentCreated:
    tweet_id = _require_id(req.tweet_id, "Tweet ID is required")
    result = run_add_tweet_comment(
        AddCommentInput(user=current_user, parent_id=tweet_id, content=req.content),
        repo=comments,
        tweets=repo.get,
        time_port=clock,
    )
    if not result.success or result.comment is None:
        raise_for_errors(result.errors)
    assert isinstance(result.comment, TweetComment)

    body = _comment(result.comment)
    events.emit(
        "newComment",
        {"tweetId": str(tweet_id), "comment": body.model_dump(mode="json", by_alias=True)},
    )
    return TweetCommentCreated(comment=body)


@router.delete("/comment", response_model=MessageResponse)
def delete_comment(
    comment_id: UUID | None = Query(default=None, alias="commentId"),
    current_user: User = Depends(get_current_user),
    repo: SQLiteTweetRepo = Depends(get_tweet_repo),
    comments: SQLiteTweetCommentRepo = Depends(get_tweet_comment_repo),
    policy: PolicyEngine = Depends(get_policy),
) -> MessageResponse:
    comment_id = _require_id(comment_id, "Comment ID is required")
    result = run_delete_tweet_comment(
        DeleteCommentInput(user=current_user, comment_id=comment_id),
        repo=comments,
        tweets=repo.get,
        policy=policy,
    )
    if not result.success or result.comment is None:
        raise_for_errors(result.errors)
    assert isinstance(result.comment, TweetComment)

    events.emit(
        "deleteComment",
        {"tweetId": str(result.comment.tweet_id), "commentId": str(comment_id)},
    )
    return MessageResponse(message="Comment deleted successfully")
