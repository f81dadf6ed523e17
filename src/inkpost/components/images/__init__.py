"""
Images component - best-effort deletion of uploaded image objects.
"""

from .component import MAX_KEYS_PER_REQUEST, delete_images, run_delete
from .models import DeleteImagesInput, DeleteImagesOutput, ImageValidationError
from .ports import ImageStorePort, RateLimitPort

__all__ = [
    "delete_images",
    "run_delete",
    "MAX_KEYS_PER_REQUEST",
    "DeleteImagesInput",
    "DeleteImagesOutput",
    "ImageValidationError",
    "ImageStorePort",
    "RateLimitPort",
]
