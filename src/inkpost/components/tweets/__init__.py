"""
Tweets component - create, edit, delete and the feed.
"""

from .component import run_create, run_delete, run_feed, run_update
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

__all__ = [
    # Entry points
    "run_create",
    "run_update",
    "run_delete",
    "run_feed",
    # Models
    "CreateTweetInput",
    "DeleteTweetInput",
    "FeedComment",
    "FeedItem",
    "FeedOutput",
    "TweetOutput",
    "TweetValidationError",
    "UpdateTweetInput",
    # Ports
    "CountPort",
    "ImageStorePort",
    "TimePort",
    "TweetCommentListPort",
    "TweetRepoPort",
]
