"""
Drafts component - the editable block list behind the post editor.

Every mutation is saved to the storage port immediately, so a draft
survives restarts until it is published or cleared.

Invariants:
- Block positions are contiguous from 0 (list order is the position)
- Every block has exactly one payload, of its own type
- Removing a block removes its payload
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from inkpost.components.mapper import payload_to_wire
from inkpost.domain.blocks import (
    BlockPayload,
    BlockRef,
    default_payload,
    ensure_block_type,
    image_key_of,
    parse_payload,
)
from inkpost.domain.slugs import slugify

from .models import BlockNotFoundError, Draft, RemovedBlock
from .ports import DraftStoragePort, ImageDeletePort

logger = logging.getLogger(__name__)

DEFAULT_DRAFT_KEY = "blogDraft"

_UNSET: Any = object()


def split_tags(tags: str | list[str]) -> list[str]:
    """Comma-separated string or list -> trimmed, non-empty tags."""
    items = tags.split(",") if isinstance(tags, str) else tags
    return [t.strip() for t in items if t and t.strip()]


def new_block_id(block_type: str) -> str:
    return f"{block_type}-{uuid4().hex}"


class DraftStore:
    """Owns one draft and keeps it in sync with a storage port."""

    def __init__(self, storage: DraftStoragePort, key: str = DEFAULT_DRAFT_KEY):
        self.storage = storage
        self.key = key
        self._draft = Draft()
        self.load()

    # --- Lifecycle ---

    def load(self) -> Draft:
        """Reload from storage; unreadable data starts a fresh draft."""
        data = self.storage.load(self.key)
        if data is None:
            self._draft = Draft()
        else:
            try:
                self._draft = Draft.model_validate(data)
            except ValidationError as e:
                logger.warning("Discarding unreadable draft '%s': %s", self.key, e)
                self._draft = Draft()
            else:
                self._reconcile()
        return self.snapshot()

    def _reconcile(self) -> None:
        """Give every block one payload of its own type and drop payloads without a block."""
        payloads = self._draft.payloads
        repaired: list[str] = []
        for block in self._draft.blocks:
            payload = payloads.get(block.id)
            if payload is None or payload.type != block.type:
                payloads[block.id] = default_payload(block.type)
                repaired.append(block.id)
        block_ids = {b.id for b in self._draft.blocks}
        orphans = [block_id for block_id in payloads if block_id not in block_ids]
        for block_id in orphans:
            del payloads[block_id]
        if repaired or orphans:
            logger.warning(
                "Repaired draft '%s': reset payloads %s, dropped orphans %s",
                self.key,
                repaired,
                orphans,
            )
            self._save()

    def snapshot(self) -> Draft:
        return self._draft.model_copy(deep=True)

    def clear(self) -> None:
        self.storage.delete(self.key)
        self._draft = Draft()

    def _save(self) -> None:
        self.storage.save(self.key, self._draft.model_dump(mode="json"))

    # --- Blocks ---

    @property
    def blocks(self) -> list[BlockRef]:
        return list(self._draft.blocks)

    def _index_of(self, block_id: str) -> int:
        for i, block in enumerate(self._draft.blocks):
            if block.id == block_id:
                return i
        raise BlockNotFoundError(f"No block '{block_id}' in draft.")

    def payload(self, block_id: str) -> BlockPayload:
        self._index_of(block_id)
        return self._draft.payloads[block_id]

    def insert_block(self, block_type: str, index: int | None = None) -> str:
        """
        Add an empty block of `block_type`; appends unless `index` is given.

        Raises:
            UnknownBlockTypeError: block_type is not supported.
        """
        ensure_block_type(block_type)
        block_id = new_block_id(block_type)
        blocks = self._draft.blocks
        position = len(blocks) if index is None else max(0, min(index, len(blocks)))
        blocks.insert(position, BlockRef(id=block_id, type=block_type))
        self._draft.payloads[block_id] = default_payload(block_type)
        self._save()
        return block_id

    def reorder_blocks(self, block_id: str, new_index: int) -> None:
        """Move a block; the target index is clamped into range."""
        blocks = self._draft.blocks
        current = self._index_of(block_id)
        target = max(0, min(new_index, len(blocks) - 1))
        if target == current:
            return
        blocks.insert(target, blocks.pop(current))
        self._save()

    def remove_block(self, block_id: str) -> RemovedBlock:
        index = self._index_of(block_id)
        block = self._draft.blocks.pop(index)
        payload = self._draft.payloads.pop(block_id, None)
        self._save()
        return RemovedBlock(
            id=block.id,
            type=block.type,
            image_key=image_key_of(payload) if payload is not None else None,
        )

    def update_block_payload(self, block_id: str, payload: Any) -> BlockPayload:
        """
        Replace a block's payload.

        Raises:
            BlockNotFoundError: unknown block id.
            BlockPayloadError: payload does not fit the block's type.
        """
        block = self._draft.blocks[self._index_of(block_id)]
        parsed = parse_payload(block.type, payload)
        self._draft.payloads[block_id] = parsed
        self._save()
        return parsed

    def positions(self) -> dict[str, int]:
        return {block.id: i for i, block in enumerate(self._draft.blocks)}

    # --- Metadata ---

    def update_metadata(
        self,
        *,
        title: str | None = None,
        slug: str | None = None,
        short_description: str | None = None,
        tags: str | list[str] | None = None,
        thumbnail_key: str | None = _UNSET,
    ) -> Draft:
        """
        Update post metadata. A new title regenerates the slug unless an
        explicit slug is passed in the same call.
        """
        draft = self._draft
        if title is not None:
            draft.title = title
            draft.slug = slugify(title)
        if slug is not None:
            draft.slug = slugify(slug)
        if short_description is not None:
            draft.short_description = short_description
        if tags is not None:
            draft.tags = split_tags(tags)
        if thumbnail_key is not _UNSET:
            draft.thumbnail_key = thumbnail_key or None
        self._save()
        return self.snapshot()

    # --- Submission ---

    def to_submission(self) -> dict[str, Any]:
        """Body for the create-post endpoint."""
        draft = self._draft
        return {
            "title": draft.title,
            "slug": draft.slug,
            "shortDescription": draft.short_description,
            "tags": list(draft.tags),
            "thumbnailKey": draft.thumbnail_key,
            "content": {
                "components": [
                    {"id": b.id, "type": b.type, "order": i} for i, b in enumerate(draft.blocks)
                ],
                "componentData": {
                    b.id: payload_to_wire(draft.payloads[b.id]) for b in draft.blocks
                },
            },
        }


def discard_block(store: DraftStore, block_id: str, images: ImageDeletePort | None) -> RemovedBlock:
    """
    Remove a block and delete its uploaded image, best-effort.

    An image-store failure is logged and never undoes the removal.
    """
    removed = store.remove_block(block_id)
    if removed.image_key and images is not None:
        try:
            images.delete(removed.image_key)
        except Exception as e:
            logger.warning("Failed to delete image %s: %s", removed.image_key, e)
    return removed
