from fastapi import APIRouter, Depends, HTTPException

from inkpost.adapters.clock import SystemClock
from inkpost.adapters.sqlite.repos import SQLiteRelationRepo, SQLiteUserRepo
from inkpost.api.deps import get_clock, get_current_user, get_follow_repo, get_user_repo
from inkpost.api.errors import raise_for_errors
from inkpost.api.schemas import (
    FollowCheckRequest,
    FollowCheckResponse,
    FollowRequest,
    FollowResponse,
)
from inkpost.components.engagement import ToggleInput, following_ids, toggle_follow
from inkpost.domain.entities import User

router = APIRouter()


@router.post("", response_model=FollowResponse)
def follow(
    req: FollowRequest,
    current_user: User = Depends(get_current_user),
    users: SQLiteUserRepo = Depends(get_user_repo),
    follows: SQLiteRelationRepo = Depends(get_follow_repo),
    clock: SystemClock = Depends(get_clock),
) -> FollowResponse:
    """Follow or unfollow a user."""
    if req.user_id is None:
        raise HTTPException(status_code=400, detail="User ID is required")
    result = toggle_follow(
        ToggleInput(user=current_user, target_id=req.user_id),
        follows=follows,
        lookup=users.get_by_id,
        time_port=clock,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return FollowResponse(
        message="Followed" if result.active else "Unfollowed", following=result.active
    )


@router.post("/check", response_model=FollowCheckResponse)
def check_following(
    req: FollowCheckRequest,
    current_user: User = Depends(get_current_user),
    follows: SQLiteRelationRepo = Depends(get_follow_repo),
) -> FollowCheckResponse:
    """Which of `userIds` the current user follows."""
    if not isinstance(req.user_ids, list):
        raise HTTPException(status_code=400, detail="userIds must be an array")
    return FollowCheckResponse(
        following_ids=following_ids(current_user, req.user_ids, follows=follows)
    )
