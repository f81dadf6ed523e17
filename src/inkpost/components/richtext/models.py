"""
Rich text component models.

Documents are ProseMirror-style trees of plain dicts:
`{type, text?, content?[], attrs?, marks?[]}`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RichTextConfig:
    """Link and node handling for rendered rich text."""

    forbid_protocols: frozenset[str] = field(
        default_factory=lambda: frozenset(["javascript:", "data:", "vbscript:"])
    )
    add_noopener: bool = True
    add_noreferrer: bool = True
    open_links_in_new_tab: bool = True


DEFAULT_CONFIG = RichTextConfig()


@dataclass(frozen=True)
class Heading:
    """A heading found inside a rich-text block."""

    id: str
    text: str
    level: int
    index: int = 0


@dataclass
class RichTextNode:
    """Typed view over one node of a document tree."""

    type: str
    attrs: dict[str, Any] = field(default_factory=dict)
    content: list[RichTextNode] = field(default_factory=list)
    text: str | None = None
    marks: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RichTextNode:
        children = data.get("content") or []
        return cls(
            type=str(data.get("type", "")),
            attrs=dict(data.get("attrs") or {}),
            content=[cls.from_dict(c) for c in children if isinstance(c, dict)],
            text=data.get("text"),
            marks=[m for m in (data.get("marks") or []) if isinstance(m, dict)],
        )
