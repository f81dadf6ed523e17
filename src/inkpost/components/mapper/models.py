"""
Mapper component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from inkpost.domain.blocks import BlockPayload, BlockRef
from inkpost.domain.entities import StorageRow


def payload_to_wire(payload: BlockPayload) -> dict[str, Any]:
    """JSON-ready payload, with the resolved image url when there is one."""
    data: dict[str, Any] = payload.model_dump(mode="json")
    url = getattr(payload, "url", None)
    if url:
        data["url"] = url
    return data


@dataclass(frozen=True)
class SkippedRow:
    """A storage row that could not be narrowed to a payload."""

    id: str
    type: str
    reason: str


@dataclass
class MappedBlocks:
    """Ordered blocks and their payloads, rebuilt from storage rows."""

    blocks: list[BlockRef] = field(default_factory=list)
    payloads: dict[str, BlockPayload] = field(default_factory=dict)
    skipped: list[SkippedRow] = field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        """Editor form: `{components: [{id, type, order}], componentData: {id: data}}`."""
        return {
            "components": [
                {"id": b.id, "type": b.type, "order": i} for i, b in enumerate(self.blocks)
            ],
            "componentData": {
                block_id: payload_to_wire(payload) for block_id, payload in self.payloads.items()
            },
        }


@dataclass(frozen=True)
class BlockDiff:
    """Row-level changes needed to move a post from one block list to another."""

    to_update: tuple[StorageRow, ...] = ()
    to_insert: tuple[StorageRow, ...] = ()
    to_delete: tuple[StorageRow, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.to_update or self.to_insert or self.to_delete)
