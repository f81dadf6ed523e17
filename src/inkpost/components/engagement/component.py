"""
Engagement component - likes, retweets and follows.

Every toggle has the same shape: if the relation exists remove it,
otherwise add it, then re-read the count from storage. Counts are never
kept in memory between requests.

A concurrent insert that loses the unique-constraint race is reported as
"already in the desired state" rather than as an error.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from uuid import UUID, uuid4

from inkpost.domain.entities import User

from .models import EngagementValidationError, PostStats, ToggleInput, ToggleOutput
from .ports import CommentCountPort, RelationRepoPort, TargetLookup, TimePort


def _fail(code: str, message: str, field: str | None = None) -> ToggleOutput:
    return ToggleOutput(errors=[EngagementValidationError(code, message, field)], success=False)


def _toggle(
    inp: ToggleInput,
    *,
    relations: RelationRepoPort,
    lookup: TargetLookup,
    time_port: TimePort,
    not_found: str,
) -> ToggleOutput:
    if inp.user is None:
        return _fail("auth_required", "Unauthorized")
    if lookup(inp.target_id) is None:
        return _fail("not_found", not_found)

    actor = inp.user.id
    if relations.exists(actor, inp.target_id):
        relations.remove(actor, inp.target_id)
        active = False
    else:
        # A False return means a concurrent request already added it.
        relations.add(actor, inp.target_id, uuid4(), time_port.now_utc())
        active = True
    return ToggleOutput(active=active, count=relations.count(inp.target_id))


# --- Component Entry Points ---


def toggle_post_like(
    inp: ToggleInput,
    *,
    likes: RelationRepoPort,
    lookup: TargetLookup,
    time_port: TimePort,
) -> ToggleOutput:
    return _toggle(
        inp, relations=likes, lookup=lookup, time_port=time_port, not_found="Blog not found"
    )


def toggle_tweet_like(
    inp: ToggleInput,
    *,
    likes: RelationRepoPort,
    lookup: TargetLookup,
    time_port: TimePort,
) -> ToggleOutput:
    return _toggle(
        inp, relations=likes, lookup=lookup, time_port=time_port, not_found="Tweet not found"
    )


def toggle_comment_like(
    inp: ToggleInput,
    *,
    likes: RelationRepoPort,
    lookup: TargetLookup,
    time_port: TimePort,
) -> ToggleOutput:
    return _toggle(
        inp,
        relations=likes,
        lookup=lookup,
        time_port=time_port,
        not_found="Comment not found",
    )


def toggle_retweet(
    inp: ToggleInput,
    *,
    retweets: RelationRepoPort,
    lookup: TargetLookup,
    time_port: TimePort,
) -> ToggleOutput:
    return _toggle(
        inp, relations=retweets, lookup=lookup, time_port=time_port, not_found="Tweet not found"
    )


def toggle_follow(
    inp: ToggleInput,
    *,
    follows: RelationRepoPort,
    lookup: TargetLookup,
    time_port: TimePort,
) -> ToggleOutput:
    """Follow or unfollow `target_id`; `count` is the target's follower count."""
    if inp.user is not None and inp.user.id == inp.target_id:
        return _fail("validation", "You cannot follow yourself", "user_id")
    return _toggle(
        inp, relations=follows, lookup=lookup, time_port=time_port, not_found="User not found"
    )


def like_status(
    target_id: UUID, viewer: User | None, *, likes: RelationRepoPort
) -> tuple[int, bool]:
    """(like count, whether the viewer liked it)."""
    is_liked = viewer is not None and likes.exists(viewer.id, target_id)
    return likes.count(target_id), is_liked


def post_stats(
    blog_ids: Sequence[UUID],
    viewer: User | None,
    *,
    likes: RelationRepoPort,
    comments: CommentCountPort,
) -> dict[UUID, PostStats]:
    """Like count, comment count and viewer like state for many posts at once."""
    ids = list(dict.fromkeys(blog_ids))
    if not ids:
        return {}
    like_counts = likes.count_many(ids)
    comment_counts = comments.count_by_blog(ids)
    liked = likes.targets_of(viewer.id, ids) if viewer is not None else set()
    return {
        blog_id: PostStats(
            like_count=like_counts.get(blog_id, 0),
            comment_count=comment_counts.get(blog_id, 0),
            is_liked=blog_id in liked,
        )
        for blog_id in ids
    }


def parse_ids(values: Iterable[object]) -> list[UUID]:
    """Valid UUIDs from a client-supplied list; nulls and junk are dropped."""
    ids: list[UUID] = []
    for value in values:
        if value is None:
            continue
        try:
            ids.append(value if isinstance(value, UUID) else UUID(str(value)))
        except ValueError:
            continue
    return ids


def following_ids(
    viewer: User, user_ids: Iterable[object], *, follows: RelationRepoPort
) -> list[UUID]:
    """Which of `user_ids` the viewer follows, in input order."""
    ids = parse_ids(user_ids)
    if not ids:
        return []
    followed = follows.targets_of(viewer.id, ids)
    return [uid for uid in dict.fromkeys(ids) if uid in followed]
