"""
Draft component models.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from inkpost.domain.blocks import BlockPayload, BlockRef


class Draft(BaseModel):
    """Unsaved post being edited: metadata, ordered blocks and their payloads."""

    title: str = ""
    slug: str = ""
    short_description: str = ""
    tags: list[str] = Field(default_factory=list)
    thumbnail_key: str | None = None
    blocks: list[BlockRef] = Field(default_factory=list)
    payloads: dict[str, BlockPayload] = Field(default_factory=dict)


@dataclass(frozen=True)
class RemovedBlock:
    """What remove_block() took out; the caller owns cleanup of image_key."""

    id: str
    type: str
    image_key: str | None = None


class BlockNotFoundError(LookupError):
    """No block with the given id in the draft."""
