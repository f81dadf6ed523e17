"""
Comments component - comments on posts and on tweets.

Rules:
- Content is trimmed and must not be empty
- Post comments list oldest first
- A comment may be deleted by its author or by the author of the post or
  tweet it belongs to
"""

from __future__ import annotations

from uuid import UUID

from inkpost.domain.entities import BlogComment, TweetComment
from inkpost.domain.policy import PolicyEngine

from .models import (
    AddCommentInput,
    CommentListOutput,
    CommentOutput,
    CommentValidationError,
    DeleteCommentInput,
)
from .ports import BlogCommentRepoPort, ParentLookup, TimePort, TweetCommentRepoPort

MAX_COMMENT_LENGTH = 2000


def _fail(code: str, message: str, field: str | None = None) -> CommentOutput:
    return CommentOutput(errors=[CommentValidationError(code, message, field)], success=False)


def _check_add(inp: AddCommentInput, lookup: ParentLookup, not_found: str) -> CommentOutput | str:
    if inp.user is None:
        return _fail("auth_required", "Unauthorized")
    content = (inp.content or "").strip()
    if not content:
        return _fail("validation", "Content is required", "content")
    if len(content) > MAX_COMMENT_LENGTH:
        return _fail(
            "validation",
            f"Comment must be {MAX_COMMENT_LENGTH} characters or less",
            "content",
        )
    if lookup(inp.parent_id) is None:
        return _fail("not_found", not_found)
    return content


def _check_delete(
    inp: DeleteCommentInput,
    comment: BlogComment | TweetComment | None,
    parent_id: UUID | None,
    lookup: ParentLookup,
    policy: PolicyEngine,
) -> CommentOutput | None:
    if inp.user is None:
        return _fail("auth_required", "Unauthorized")
    if comment is None or (inp.parent_id is not None and parent_id != inp.parent_id):
        return _fail("not_found", "Comment not found")
    parent = lookup(parent_id) if parent_id is not None else None
    parent_owner = parent.user_id if parent is not None else comment.user_id
    if not policy.can_delete_comment(inp.user, comment, parent_owner):
        return _fail("forbidden", "Not authorized to delete this comment")
    return None


# --- Post comments ---


def run_add_blog_comment(
    inp: AddCommentInput,
    *,
    repo: BlogCommentRepoPort,
    posts: ParentLookup,
    time_port: TimePort,
) -> CommentOutput:
    checked = _check_add(inp, posts, "Blog not found")
    if isinstance(checked, CommentOutput):
        return checked
    assert inp.user is not None
    comment = BlogComment(
        blog_id=inp.parent_id,
        user_id=inp.user.id,
        content=checked,
        created_at=time_port.now_utc(),
    )
    return CommentOutput(comment=repo.add(comment))


def run_list_blog_comments(
    blog_id: UUID, *, repo: BlogCommentRepoPort, posts: ParentLookup
) -> CommentListOutput:
    if posts(blog_id) is None:
        return CommentListOutput(
            errors=[CommentValidationError("not_found", "Blog not found")], success=False
        )
    return CommentListOutput(comments=repo.list_for_blog(blog_id))


def run_delete_blog_comment(
    inp: DeleteCommentInput,
    *,
    repo: BlogCommentRepoPort,
    posts: ParentLookup,
    policy: PolicyEngine,
) -> CommentOutput:
    comment = repo.get(inp.comment_id)
    parent_id = comment.blog_id if comment is not None else None
    failed = _check_delete(inp, comment, parent_id, posts, policy)
    if failed is not None:
        return failed
    repo.delete(inp.comment_id)
    return CommentOutput(comment=comment)


# --- Tweet comments ---


def run_add_tweet_comment(
    inp: AddCommentInput,
    *,
    repo: TweetCommentRepoPort,
    tweets: ParentLookup,
    time_port: TimePort,
) -> CommentOutput:
    checked = _check_add(inp, tweets, "Tweet not found")
    if isinstance(checked, CommentOutput):
        return checked
    assert inp.user is not None
    comment = TweetComment(
        tweet_id=inp.parent_id,
        user_id=inp.user.id,
        content=checked,
        created_at=time_port.now_utc(),
    )
    return CommentOutput(comment=repo.add(comment))


def run_delete_tweet_comment(
    inp: DeleteCommentInput,
    *,
    repo: TweetCommentRepoPort,
    tweets: ParentLookup,
    policy: PolicyEngine,
) -> CommentOutput:
    comment = repo.get(inp.comment_id)
    parent_id = comment.tweet_id if comment is not None else None
    failed = _check_delete(inp, comment, parent_id, tweets, policy)
    if failed is not None:
        return failed
    repo.delete(inp.comment_id)
    return CommentOutput(comment=comment)
