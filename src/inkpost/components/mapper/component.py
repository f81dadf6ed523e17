"""
Mapper component - block payloads <-> denormalized storage rows.

Every block type shares a single row shape; each type fills only its own
columns. Table and code payloads are kept as structured JSON in `content`.

Round-trip law: for any valid block list, to_storage_rows() followed by
from_storage_rows() yields the same block types and payloads in the same
order. Row ids are regenerated on create.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote
from uuid import UUID, uuid4

from inkpost.domain.blocks import (
    BLOCK_TYPE_ALIASES,
    BlockPayload,
    BlockPayloadError,
    BlockRef,
    CodePayload,
    ImagePayload,
    ImageTextPayload,
    RichTextPayload,
    TablePayload,
    VideoPayload,
    default_payload,
    ensure_block_type,
    parse_payload,
)
from inkpost.domain.entities import StorageRow

from .models import BlockDiff, MappedBlocks, SkippedRow

logger = logging.getLogger(__name__)


def resolve_image_url(origin: str | None, key: str | None) -> str | None:
    """Public URL of a stored image object. Absolute URLs pass through."""
    if not key:
        return None
    if key.startswith(("http://", "https://")):
        return key
    if not origin:
        return None
    return f"{origin.rstrip('/')}/{quote(key.lstrip('/'), safe='/')}"


# --- Per-row helpers ---


def widen(
    payload: BlockPayload | None,
    order: int,
    *,
    block_type: str | None = None,
    blog_id: UUID | None = None,
    row_id: str | None = None,
) -> StorageRow:
    """
    Fill a storage row from a payload.

    A missing payload still produces a row (type and order only) so the
    block survives the round trip as an empty block of its type.
    """
    if payload is None and block_type is None:
        raise ValueError("block_type is required when payload is None")
    row_type = ensure_block_type(block_type or payload.type)  # type: ignore[union-attr]
    row = StorageRow(id=row_id or str(uuid4()), blog_id=blog_id, type=row_type, order=order)

    if payload is None:
        return row
    if payload.type != row_type:
        raise BlockPayloadError(
            f"Payload of type '{payload.type}' does not match block type '{row_type}'."
        )

    if isinstance(payload, RichTextPayload):
        row.content = payload.doc
    elif isinstance(payload, ImageTextPayload):
        row.text = payload.text
        row.image_key = payload.image_key
        row.alignment = payload.alignment
    elif isinstance(payload, ImagePayload):
        row.image_key = payload.image_key
    elif isinstance(payload, VideoPayload):
        row.video_url = payload.url
        row.video_type = payload.video_type
    elif isinstance(payload, (TablePayload, CodePayload)):
        row.content = payload.model_dump(exclude={"type"})
    return row


def _structured_content(row: StorageRow) -> dict[str, Any] | None:
    content = row.content
    if content is None or content == "":
        return None
    if isinstance(content, str):
        try:
            content = json.loads(content)
        except json.JSONDecodeError as e:
            raise BlockPayloadError(f"Row {row.id} has malformed JSON content.") from e
    if not isinstance(content, dict):
        raise BlockPayloadError(f"Row {row.id} content must be an object.")
    return content


def narrow(row: StorageRow, image_origin: str | None = None) -> BlockPayload:
    """
    Rebuild the payload a storage row was widened from.

    Raises:
        UnknownBlockTypeError: the row's type tag is not supported.
        BlockPayloadError: the row's columns do not form a valid payload.
    """
    block_type = ensure_block_type(row.type)

    if block_type == "richtext":
        return parse_payload("richtext", row.content)

    if block_type == "imagetext":
        payload = parse_payload(
            "imagetext",
            {
                "text": row.text or "",
                "image_key": row.image_key,
                "alignment": row.alignment or "left",
            },
        )
    elif block_type == "image":
        payload = parse_payload("image", {"image_key": row.image_key})
    elif block_type == "video":
        payload = parse_payload(
            "video", {"url": row.video_url or "", "video_type": row.video_type}
        )
    else:
        content = _structured_content(row)
        if content is None:
            return default_payload(block_type)
        payload = parse_payload(block_type, content)

    if isinstance(payload, (ImagePayload, ImageTextPayload)) and payload.image_key:
        payload = payload.model_copy(
            update={"url": resolve_image_url(image_origin, payload.image_key)}
        )
    return payload


# --- Whole-list mapping ---


def to_storage_rows(
    blocks: Sequence[BlockRef],
    payloads: Mapping[str, BlockPayload],
    blog_id: UUID | None = None,
    *,
    keep_ids: bool = False,
) -> list[StorageRow]:
    """
    Serialize an ordered block list; `order` is the list index.

    With keep_ids the block ids become row ids, which lets diff_blocks()
    match them against the rows already stored for a post.
    """
    rows = []
    for index, block in enumerate(blocks):
        rows.append(
            widen(
                payloads.get(block.id),
                index,
                block_type=block.type,
                blog_id=blog_id,
                row_id=block.id if keep_ids else None,
            )
        )
    return rows


def from_storage_rows(rows: Sequence[StorageRow], image_origin: str | None = None) -> MappedBlocks:
    """
    Rebuild blocks and payloads from storage rows, ordered by `order`.

    Rows that cannot be narrowed are skipped and logged; they never fail
    the whole post.
    """
    mapped = MappedBlocks()
    for row in sorted(rows, key=lambda r: r.order):
        try:
            payload = narrow(row, image_origin)
        except ValueError as e:
            logger.warning("Skipping block row %s (%s): %s", row.id, row.type, e)
            mapped.skipped.append(SkippedRow(id=row.id, type=row.type, reason=str(e)))
            continue
        mapped.blocks.append(BlockRef(id=row.id, type=row.type))
        mapped.payloads[row.id] = payload
    return mapped


def parse_submission(
    components: Sequence[Mapping[str, Any]],
    component_data: Mapping[str, Any] | None = None,
) -> tuple[list[BlockRef], dict[str, BlockPayload]]:
    """
    Validate an editor submission `{components, componentData}`.

    Component order follows an explicit `order` key when every component
    has one, otherwise list order. A component may carry its payload inline
    under `data`; one without an id gets a fresh one.

    Raises:
        UnknownBlockTypeError, BlockPayloadError
    """
    component_data = component_data or {}
    items = list(components)
    if items and all(isinstance(c.get("order"), int) for c in items):
        items.sort(key=lambda c: c["order"])

    blocks: list[BlockRef] = []
    payloads: dict[str, BlockPayload] = {}
    seen: set[str] = set()
    for item in items:
        raw_type = str(item.get("type") or "")
        block_type = ensure_block_type(BLOCK_TYPE_ALIASES.get(raw_type, raw_type))
        block_id = str(item.get("id") or "") or f"{block_type}-{uuid4().hex}"
        if block_id in seen:
            raise BlockPayloadError(f"Duplicate component id '{block_id}'.")
        seen.add(block_id)
        data = component_data.get(block_id, item.get("data"))
        blocks.append(BlockRef(id=block_id, type=block_type))
        payloads[block_id] = parse_payload(block_type, data)
    return blocks, payloads


def _row_state(row: StorageRow) -> dict[str, Any]:
    return row.model_dump(exclude={"id", "blog_id"})


def diff_blocks(existing_rows: Sequence[StorageRow], new_rows: Sequence[StorageRow]) -> BlockDiff:
    """
    Match new rows against stored ones by id.

    - same id, changed columns or order: update
    - id not stored for this post: insert under a fresh row id
    - stored id missing from the new list: delete
    """
    existing = {row.id: row for row in existing_rows}
    to_update: list[StorageRow] = []
    to_insert: list[StorageRow] = []
    kept: set[str] = set()

    for row in new_rows:
        old = existing.get(row.id)
        if old is None:
            to_insert.append(row.model_copy(update={"id": str(uuid4())}))
            continue
        kept.add(row.id)
        if _row_state(old) != _row_state(row):
            to_update.append(row)

    to_delete = [row for row in existing_rows if row.id not in kept]
    return BlockDiff(
        to_update=tuple(to_update), to_insert=tuple(to_insert), to_delete=tuple(to_delete)
    )
