"""
Render component models.

Everything here is derived from a block list and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from inkpost.components.richtext.models import Heading


@dataclass
class OutlineNode:
    """A heading and the deeper headings nested under it."""

    heading: Heading
    children: list[OutlineNode] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.heading.id,
            "text": self.heading.text,
            "level": self.heading.level,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass(frozen=True)
class VideoSource:
    """Result of classifying a pasted video URL."""

    embed_url: str
    video_type: str  # youtube | drive | cloudinary | direct


@dataclass(frozen=True)
class RenderedSection:
    """HTML for a single block."""

    block_id: str
    type: str
    html: str


@dataclass(frozen=True)
class RenderedDocument:
    """Output of render_document()."""

    html: str
    sections: tuple[RenderedSection, ...] = ()
    headings: tuple[Heading, ...] = ()
    outline: tuple[OutlineNode, ...] = ()
