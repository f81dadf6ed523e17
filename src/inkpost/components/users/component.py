"""
Users component - public profiles and profile edits.

- A profile shows follower, following and top-level tweet counts with
  the latest tweets, newest first
- Name, username and bio limits come from `users` in the rules file
- A username held by another account is rejected, including one claimed
  between the check and the write
"""

from __future__ import annotations

import logging
import re

from inkpost.components.mapper import resolve_image_url
from inkpost.domain.slugs import UsernameTakenError
from inkpost.rules.models import UsersRules

from .models import (
    GetProfileInput,
    ProfileOutput,
    ProfileTweet,
    UpdateProfileInput,
    UserOutput,
    UserValidationError,
)
from .ports import (
    CommentCountPort,
    FollowPort,
    LikeCountPort,
    TimePort,
    UserRepoPort,
    UserTweetsPort,
)

logger = logging.getLogger(__name__)

USERNAME_TAKEN_MESSAGE = "Username is already taken"


def _fail(code: str, message: str, field: str | None = None) -> UserOutput:
    return UserOutput(errors=[UserValidationError(code, message, field)], success=False)


def validate_profile(
    rules: UsersRules,
    *,
    name: str,
    username: str,
    bio: str | None,
) -> UserValidationError | None:
    """First failing field, checked in form order."""
    if len(name) < rules.name.min:
        return UserValidationError("validation", "Name is required", "name")
    if len(name) > rules.name.max:
        return UserValidationError("validation", "Name is too long", "name")
    if len(username) < rules.username.min:
        return UserValidationError(
            "validation",
            f"Username must be at least {rules.username.min} characters",
            "username",
        )
    if len(username) > rules.username.max:
        return UserValidationError("validation", "Username is too long", "username")
    if not re.match(rules.username_pattern, username):
        return UserValidationError(
            "validation",
            "Username can only contain lowercase letters, numbers, and underscores",
            "username",
        )
    if bio is not None and len(bio) > rules.max_bio_length:
        return UserValidationError("validation", "Bio is too long", "bio")
    return None


def run_get_profile(
    inp: GetProfileInput,
    *,
    users: UserRepoPort,
    follows: FollowPort,
    tweets: UserTweetsPort,
    likes: LikeCountPort,
    comments: CommentCountPort,
    rules: UsersRules,
) -> ProfileOutput:
    user = users.get_by_username(inp.username) if inp.username else None
    if user is None:
        return ProfileOutput(
            errors=[UserValidationError("not_found", "User not found")], success=False
        )

    latest = tweets.list_by_user(user.id, rules.profile_tweet_limit)
    ids = [t.id for t in latest]
    like_counts = likes.count_many(ids) if ids else {}
    comment_counts = comments.count_by_tweet(ids) if ids else {}

    viewer = inp.viewer
    is_following = is_following_back = False
    if viewer is not None and viewer.id != user.id:
        is_following = follows.exists(viewer.id, user.id)
        is_following_back = follows.exists(user.id, viewer.id)

    return ProfileOutput(
        user=user,
        follower_count=follows.count(user.id),
        following_count=follows.count_by_actor(user.id),
        tweet_count=tweets.count_by_user(user.id),
        tweets=[
            ProfileTweet(
                tweet=t,
                like_count=like_counts.get(t.id, 0),
                comment_count=comment_counts.get(t.id, 0),
            )
            for t in latest
        ],
        is_following=is_following,
        is_following_back=is_following_back,
    )


def run_update_profile(
    inp: UpdateProfileInput,
    *,
    users: UserRepoPort,
    rules: UsersRules,
    time_port: TimePort,
    image_origin: str | None = None,
) -> UserOutput:
    """Replace name, username and bio; a new profile image key also replaces the avatar."""
    if inp.user is None:
        return _fail("auth_required", "Unauthorized")

    name = (inp.name or "").strip()
    username = inp.username or ""
    bio = inp.bio or None
    error = validate_profile(rules, name=name, username=username, bio=bio)
    if error is not None:
        return UserOutput(errors=[error], success=False)

    holder = users.get_by_username(username)
    if holder is not None and holder.id != inp.user.id:
        return _fail("validation", USERNAME_TAKEN_MESSAGE, "username")

    updates: dict = {
        "name": name,
        "username": username,
        "bio": bio,
        "updated_at": time_port.now_utc(),
    }
    if inp.profile_image_key:
        updates["image"] = resolve_image_url(image_origin, inp.profile_image_key)
    updated = inp.user.model_copy(update=updates)

    try:
        users.save(updated)
    except UsernameTakenError:
        logger.info("Username %s was taken concurrently", username)
        return _fail("validation", USERNAME_TAKEN_MESSAGE, "username")

    if inp.user.username != username:
        logger.info("User %s renamed from %s to %s", inp.user.id, inp.user.username, username)
    return UserOutput(user=updated)
