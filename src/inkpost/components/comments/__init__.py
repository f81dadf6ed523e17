"""
Comments component - post and tweet comments.
"""

from .component import (
    MAX_COMMENT_LENGTH,
    run_add_blog_comment,
    run_add_tweet_comment,
    run_delete_blog_comment,
    run_delete_tweet_comment,
    run_list_blog_comments,
)
from .models import (
    AddCommentInput,
    CommentListOutput,
    CommentOutput,
    CommentValidationError,
    DeleteCommentInput,
)
from .ports import BlogCommentRepoPort, ParentLookup, TimePort, TweetCommentRepoPort

__all__ = [
    # Entry points
    "run_add_blog_comment",
    "run_list_blog_comments",
    "run_delete_blog_comment",
    "run_add_tweet_comment",
    "run_delete_tweet_comment",
    "MAX_COMMENT_LENGTH",
    # Models
    "AddCommentInput",
    "CommentListOutput",
    "CommentOutput",
    "CommentValidationError",
    "DeleteCommentInput",
    # Ports
    "BlogCommentRepoPort",
    "ParentLookup",
    "TimePort",
    "TweetCommentRepoPort",
]
