"""
Mapper component - block payloads <-> storage rows.
"""

from .component import (
    diff_blocks,
    from_storage_rows,
    narrow,
    parse_submission,
    resolve_image_url,
    to_storage_rows,
    widen,
)
from .models import BlockDiff, MappedBlocks, SkippedRow, payload_to_wire

__all__ = [
    # Entry points
    "to_storage_rows",
    "from_storage_rows",
    "parse_submission",
    "diff_blocks",
    # Per-row helpers
    "widen",
    "narrow",
    "resolve_image_url",
    "payload_to_wire",
    # Models
    "BlockDiff",
    "MappedBlocks",
    "SkippedRow",
]
