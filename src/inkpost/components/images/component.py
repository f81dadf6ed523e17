"""
Images component - best-effort deletion of uploaded image objects.

Image deletion never blocks the operation that triggered it: failures
are logged and reported, the caller decides what to tell the user.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models import DeleteImagesInput, DeleteImagesOutput, ImageValidationError
from .ports import ImageStorePort, RateLimitPort

logger = logging.getLogger(__name__)

MAX_KEYS_PER_REQUEST = 100


def delete_images(
    keys: Iterable[str | None], store: ImageStorePort | None
) -> tuple[list[str], list[str]]:
    """
    Attempt every key; returns (deleted, failed).

    Empty keys and duplicates are ignored.
    """
    deleted: list[str] = []
    failed: list[str] = []
    if store is None:
        return deleted, failed
    seen: set[str] = set()
    for key in keys:
        if not key or key in seen:
            continue
        seen.add(key)
        try:
            store.delete(key)
            deleted.append(key)
        except Exception as e:
            logger.warning("Failed to delete image %s: %s", key, e)
            failed.append(key)
    return deleted, failed


def run_delete(
    inp: DeleteImagesInput,
    *,
    store: ImageStorePort,
    limiter: RateLimitPort | None = None,
) -> DeleteImagesOutput:
    """Authenticated, rate-limited bulk delete."""
    if inp.user_id is None:
        return DeleteImagesOutput(
            errors=[ImageValidationError("auth_required", "Unauthorized")], success=False
        )

    if limiter is not None and not limiter.check_image_delete(str(inp.user_id)):
        return DeleteImagesOutput(
            errors=[ImageValidationError("rate_limited", "Too many requests")],
            success=False,
        )

    keys = tuple(k.strip() for k in inp.keys if isinstance(k, str) and k.strip())
    if not keys:
        return DeleteImagesOutput(
            errors=[ImageValidationError("validation", "At least one key is required", "keys")],
            success=False,
        )
    if len(keys) > MAX_KEYS_PER_REQUEST:
        return DeleteImagesOutput(
            errors=[
                ImageValidationError(
                    "validation",
                    f"At most {MAX_KEYS_PER_REQUEST} keys per request",
                    "keys",
                )
            ],
            success=False,
        )

    deleted, failed = delete_images(keys, store)
    if failed and not deleted:
        return DeleteImagesOutput(
            failed=tuple(failed),
            errors=[ImageValidationError("delete_failed", "Failed to delete images")],
            success=False,
        )
    return DeleteImagesOutput(deleted=tuple(deleted), failed=tuple(failed))
