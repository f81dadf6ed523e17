"""
Profile routes: a user's public page and editing your own profile.
"""

from fastapi import APIRouter, Depends

from inkpost.adapters.clock import SystemClock
from inkpost.adapters.sqlite.repos import (
    SQLiteRelationRepo,
    SQLiteTweetCommentRepo,
    SQLiteTweetRepo,
    SQLiteUserRepo,
)
from inkpost.api.deps import (
    get_clock,
    get_current_user,
    get_follow_repo,
    get_optional_user,
    get_rules,
    get_tweet_comment_repo,
    get_tweet_like_repo,
    get_tweet_repo,
    get_user_repo,
)
from inkpost.api.errors import raise_for_errors
from inkpost.api.schemas import (
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    ProfileUser,
    TweetResponse,
    UserResponse,
)
from inkpost.components.mapper import resolve_image_url
from inkpost.components.users import (
    GetProfileInput,
    ProfileTweet,
    UpdateProfileInput,
    run_get_profile,
    run_update_profile,
)
from inkpost.domain.entities import User
from inkpost.rules.models import Rules

router = APIRouter()


def _tweet(item: ProfileTweet, origin: str) -> TweetResponse:
    tweet = item.tweet
    return TweetResponse.model_validate(
        {
            **tweet.model_dump(),
            "image_urls": [u for k in tweet.image_keys if (u := resolve_image_url(origin, k))],
            "like_count": item.like_count,
            "comment_count": item.comment_count,
        }
    )


@router.get("/profile/{username}", response_model=ProfileResponse)
def get_profile(
    username: str,
    viewer: User | None = Depends(get_optional_user),
    users: SQLiteUserRepo = Depends(get_user_repo),
    follows: SQLiteRelationRepo = Depends(get_follow_repo),
    tweets: SQLiteTweetRepo = Depends(get_tweet_repo),
    likes: SQLiteRelationRepo = Depends(get_tweet_like_repo),
    comments: SQLiteTweetCommentRepo = Depends(get_tweet_comment_repo),
    rules: Rules = Depends(get_rules),
) -> ProfileResponse:
    result = run_get_profile(
        GetProfileInput(username=username, viewer=viewer),
        users=users,
        follows=follows,
        tweets=tweets,
        likes=likes,
        comments=comments,
        rules=rules.users,
    )
    if not result.success:
        raise_for_errors(result.errors)
    assert result.user is not None

    user = ProfileUser.model_validate(
        {
            **result.user.model_dump(),
            "follower_count": result.follower_count,
            "following_count": result.following_count,
            "tweet_count": result.tweet_count,
        }
    )
    origin = rules.images.public_origin
    return ProfileResponse(
        user=user,
        tweets=[_tweet(item, origin) for item in result.tweets],
        is_following=result.is_following,
        is_following_back=result.is_following_back,
    )


@router.put("/update-profile", response_model=ProfileUpdateResponse)
def update_profile(
    req: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    users: SQLiteUserRepo = Depends(get_user_repo),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> ProfileUpdateResponse:
    result = run_update_profile(
        UpdateProfileInput(
            user=current_user,
            name=req.name,
            username=req.username,
            bio=req.bio,
            profile_image_key=req.profile_image_key,
        ),
        users=users,
        rules=rules.users,
        time_port=clock,
        image_origin=rules.images.public_origin,
    )
    if not result.success:
        raise_for_errors(result.errors)
    assert result.user is not None
    return ProfileUpdateResponse(user=UserResponse.model_validate(result.user.model_dump()))
