"""
Images component port definitions.
"""

from __future__ import annotations

from typing import Protocol


class ImageStorePort(Protocol):
    """External object store holding uploaded images."""

    def delete(self, key: str) -> None:
        """Delete one object. Missing keys are not an error."""
        ...


class RateLimitPort(Protocol):
    def check_image_delete(self, user_id: str) -> bool:
        """Record one request; False once the user is over the limit."""
        ...
