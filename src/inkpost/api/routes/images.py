"""
Image object deletion.

POST deletes a batch of keys, DELETE a single key. Both require a session
and share the per-user image-delete rate limit.
"""

from fastapi import APIRouter, Depends

from inkpost.api.deps import get_current_user, get_image_store, get_rate_limiter
from inkpost.api.errors import raise_for_errors
from inkpost.api.schemas import ImageBulkDeleteRequest, ImageDeleteRequest, ImageDeleteResponse
from inkpost.app_shell.rate_limit import RateLimiter
from inkpost.components.images import DeleteImagesInput, ImageStorePort, run_delete
from inkpost.domain.entities import User

router = APIRouter()


def _delete(
    keys: list[str], user: User, store: ImageStorePort, limiter: RateLimiter
) -> ImageDeleteResponse:
    result = run_delete(
        DeleteImagesInput(user_id=user.id, keys=tuple(keys)), store=store, limiter=limiter
    )
    if not result.success:
        raise_for_errors(result.errors)
    return ImageDeleteResponse(
        message=f"Deleted {len(result.deleted)} file(s)",
        deleted=list(result.deleted),
        failed=list(result.failed),
    )


@router.post("/delete", response_model=ImageDeleteResponse)
def delete_many(
    req: ImageBulkDeleteRequest,
    current_user: User = Depends(get_current_user),
    store: ImageStorePort = Depends(get_image_store),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> ImageDeleteResponse:
    return _delete(req.keys, current_user, store, limiter)


@router.delete("/delete", response_model=ImageDeleteResponse)
def delete_one(
    req: ImageDeleteRequest,
    current_user: User = Depends(get_current_user),
    store: ImageStorePort = Depends(get_image_store),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> ImageDeleteResponse:
    return _delete([req.key], current_user, store, limiter)
