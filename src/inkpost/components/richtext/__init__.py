"""
Rich text component - document tree helpers and HTML rendering.
"""

from .component import (
    build_link_rel,
    heading_anchor,
    heading_level,
    is_safe_url,
    iter_headings,
    node_text,
    parse_document,
    render_node_html,
    sanitize_url,
)
from .models import DEFAULT_CONFIG, Heading, RichTextConfig, RichTextNode

__all__ = [
    # Entry points
    "parse_document",
    "node_text",
    "render_node_html",
    "iter_headings",
    # Helpers
    "heading_anchor",
    "heading_level",
    "is_safe_url",
    "sanitize_url",
    "build_link_rel",
    # Models
    "DEFAULT_CONFIG",
    "Heading",
    "RichTextConfig",
    "RichTextNode",
]
