from fastapi import APIRouter, Depends, HTTPException

from inkpost.adapters import events
from inkpost.adapters.clock import SystemClock
from inkpost.adapters.sqlite.repos import SQLiteRelationRepo, SQLiteTweetCommentRepo
from inkpost.api.deps import (
    get_clock,
    get_comment_like_repo,
    get_current_user,
    get_tweet_comment_repo,
)
from inkpost.api.errors import raise_for_errors
from inkpost.api.schemas import CommentLikeRequest, CommentLikeResponse
from inkpost.components.engagement import ToggleInput, toggle_comment_like
from inkpost.domain.entities import User

router = APIRouter()


@router.post("/like", response_model=CommentLikeResponse)
def like_comment(
    req: CommentLikeRequest,
    current_user: User = Depends(get_current_user),
    comments: SQLiteTweetCommentRepo = Depends(get_tweet_comment_repo),
    likes: SQLiteRelationRepo = Depends(get_comment_like_repo),
    clock: SystemClock = Depends(get_clock),
) -> CommentLikeResponse:
    """Toggle a like on a tweet comment."""
    if req.comment_id is None:
        raise HTTPException(status_code=400, detail="Comment ID is required")
    result = toggle_comment_like(
        ToggleInput(user=current_user, target_id=req.comment_id),
        likes=likes,
        lookup=comments.get,
        time_port=clock,
    )
    if not result.success:
        raise_for_errors(result.errors)

    comment = comments.get(req.comment_id)
    if comment is not None:
        events.emit(
            "likeComment",
            {
                "tweetId": str(comment.tweet_id),
                "commentId": str(comment.id),
                "likes": result.count,
            },
        )
    return CommentLikeResponse(
        message="Comment liked" if result.active else "Comment unliked",
        liked=result.active,
        like_count=result.count,
    )
