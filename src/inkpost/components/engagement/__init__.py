"""
Engagement component - like, retweet and follow toggles plus batch stats.
"""

from .component import (
    following_ids,
    like_status,
    parse_ids,
    post_stats,
    toggle_comment_like,
    toggle_follow,
    toggle_post_like,
    toggle_retweet,
    toggle_tweet_like,
)
from .models import EngagementValidationError, PostStats, ToggleInput, ToggleOutput
from .ports import CommentCountPort, RelationRepoPort, TargetLookup, TimePort

__all__ = [
    # Entry points
    "toggle_post_like",
    "toggle_tweet_like",
    "toggle_comment_like",
    "toggle_retweet",
    "toggle_follow",
    "like_status",
    "post_stats",
    "following_ids",
    "parse_ids",
    # Models
    "EngagementValidationError",
    "PostStats",
    "ToggleInput",
    "ToggleOutput",
    # Ports
    "CommentCountPort",
    "RelationRepoPort",
    "TargetLookup",
    "TimePort",
]
