"""
Images component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True)
class ImageValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class DeleteImagesInput:
    """Bulk delete request; `keys` may hold one key."""

    user_id: UUID | None
    keys: tuple[str, ...]


@dataclass(frozen=True)
class DeleteImagesOutput:
    deleted: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    errors: list[ImageValidationError] = field(default_factory=list)
    success: bool = True
