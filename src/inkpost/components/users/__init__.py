"""
Users component - public profiles and profile edits.
"""

from .component import (
    USERNAME_TAKEN_MESSAGE,
    run_get_profile,
    run_update_profile,
    validate_profile,
)
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

__all__ = [
    # Entry points
    "run_get_profile",
    "run_update_profile",
    "validate_profile",
    "USERNAME_TAKEN_MESSAGE",
    # Models
    "GetProfileInput",
    "ProfileOutput",
    "ProfileTweet",
    "UpdateProfileInput",
    "UserOutput",
    "UserValidationError",
    # Ports
    "CommentCountPort",
    "FollowPort",
    "LikeCountPort",
    "TimePort",
    "UserRepoPort",
    "UserTweetsPort",
]
