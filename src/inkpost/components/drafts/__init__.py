"""
Drafts component - editable block list with persistent storage.
"""

from .component import (
    DEFAULT_DRAFT_KEY,
    DraftStore,
    discard_block,
    new_block_id,
    split_tags,
)
from .models import BlockNotFoundError, Draft, RemovedBlock
from .ports import DraftStoragePort, ImageDeletePort

__all__ = [
    # Entry points
    "DraftStore",
    "discard_block",
    "split_tags",
    "new_block_id",
    "DEFAULT_DRAFT_KEY",
    # Models
    "BlockNotFoundError",
    "Draft",
    "RemovedBlock",
    # Ports
    "DraftStoragePort",
    "ImageDeletePort",
]
