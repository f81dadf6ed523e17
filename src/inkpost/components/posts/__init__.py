"""
Posts component - create, update, delete and read block-based posts.
"""

from .component import (
    SLUG_EXISTS_MESSAGE,
    run_create,
    run_delete,
    run_get,
    run_list,
    run_patch,
    run_update,
    run_view,
    validate_metadata,
)
from .models import (
    CreatePostInput,
    DeletePostInput,
    GetPostInput,
    ListPostsInput,
    PatchPostInput,
    PostListOutput,
    PostOutput,
    PostValidationError,
    PostViewOutput,
    UpdatePostInput,
    ViewPostInput,
)
from .ports import CommentCountPort, ImageStorePort, LikeCountPort, PostRepoPort, TimePort

__all__ = [
    # Entry points
    "run_create",
    "run_update",
    "run_patch",
    "run_delete",
    "run_get",
    "run_list",
    "run_view",
    "validate_metadata",
    "SLUG_EXISTS_MESSAGE",
    # Input models
    "CreatePostInput",
    "UpdatePostInput",
    "PatchPostInput",
    "DeletePostInput",
    "GetPostInput",
    "ListPostsInput",
    "ViewPostInput",
    # Output models
    "PostOutput",
    "PostListOutput",
    "PostViewOutput",
    "PostValidationError",
    # Ports
    "PostRepoPort",
    "LikeCountPort",
    "CommentCountPort",
    "ImageStorePort",
    "TimePort",
]
