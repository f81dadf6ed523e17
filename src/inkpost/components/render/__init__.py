"""
Render component - post HTML and navigation outline.
"""

from .component import (
    DEFAULT_ACTIVATION_THRESHOLD,
    active_heading,
    build_outline,
    classify_video_url,
    extract_headings,
    render_block,
    render_document,
)
from .models import OutlineNode, RenderedDocument, RenderedSection, VideoSource

__all__ = [
    # Entry points
    "render_document",
    "render_block",
    "extract_headings",
    "build_outline",
    "active_heading",
    "classify_video_url",
    "DEFAULT_ACTIVATION_THRESHOLD",
    # Models
    "OutlineNode",
    "RenderedDocument",
    "RenderedSection",
    "VideoSource",
]
