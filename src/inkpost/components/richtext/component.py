"""
Rich text component - document tree helpers and HTML rendering.

Key behaviors:
- Accepts documents as dicts or JSON strings; non-JSON text becomes a
  single paragraph
- Escapes all text and attribute values
- Drops links using forbidden protocols (javascript:, data:)
- Adds rel="noopener noreferrer" to links
- Gives every non-empty heading a stable anchor id `<block_id>-h<n>`
"""

from __future__ import annotations

import html
from collections.abc import Iterator
from typing import Any

from inkpost.domain.blocks import coerce_document

from .models import DEFAULT_CONFIG, Heading, RichTextConfig, RichTextNode

# Node types rendered as a simple wrapping element.
NODE_TYPE_TO_TAG: dict[str, str] = {
    "paragraph": "p",
    "blockquote": "blockquote",
    "bulletList": "ul",
    "orderedList": "ol",
    "listItem": "li",
}

# Mark types rendered as a simple wrapping element. Links are handled apart.
MARK_TYPE_TO_TAG: dict[str, str] = {
    "bold": "strong",
    "strong": "strong",
    "italic": "em",
    "em": "em",
    "underline": "u",
    "strike": "s",
    "code": "code",
    "subscript": "sub",
    "superscript": "sup",
}

TEXT_ALIGNMENTS = frozenset(["left", "center", "right", "justify"])


def parse_document(value: Any) -> dict[str, Any]:
    """Normalize a stored or submitted rich-text value into a document tree."""
    return coerce_document(value)


def heading_level(node: dict[str, Any] | RichTextNode) -> int:
    """Level from attrs, default 1, clamped to 1..6."""
    attrs = node.attrs if isinstance(node, RichTextNode) else (node.get("attrs") or {})
    try:
        level = int(attrs.get("level", 1))
    except (TypeError, ValueError):
        level = 1
    return max(1, min(6, level))


def node_text(node: dict[str, Any] | RichTextNode) -> str:
    """Concatenated text of a node and all its descendants."""
    if isinstance(node, dict):
        node = RichTextNode.from_dict(node)
    if node.text is not None:
        return node.text
    return "".join(node_text(child) for child in node.content)


def heading_anchor(block_id: str, n: int) -> str:
    return f"{block_id}-h{n}"


def iter_headings(doc: dict[str, Any], block_id: str) -> Iterator[Heading]:
    """
    Yield the headings of one document in depth-first order.

    Headings whose text is empty or whitespace are skipped and do not
    consume an anchor number. `index` is local to this document.
    """
    n = 0
    for node in _walk(RichTextNode.from_dict(parse_document(doc))):
        if node.type != "heading":
            continue
        text = node_text(node).strip()
        if not text:
            continue
        yield Heading(id=heading_anchor(block_id, n), text=text, level=heading_level(node), index=n)
        n += 1


def _walk(node: RichTextNode) -> Iterator[RichTextNode]:
    yield node
    for child in node.content:
        yield from _walk(child)


# --- Link Sanitization ---


def is_safe_url(url: str, config: RichTextConfig = DEFAULT_CONFIG) -> bool:
    """False if the URL uses a forbidden protocol."""
    if not url:
        return True
    # Browsers ignore embedded whitespace and control chars in the scheme.
    compact = "".join(ch for ch in url if ch > " ").lower()
    return not any(compact.startswith(p) for p in config.forbid_protocols)


def sanitize_url(url: str, config: RichTextConfig = DEFAULT_CONFIG) -> str | None:
    if not is_safe_url(url, config):
        return None
    return url.strip()


def build_link_rel(config: RichTextConfig = DEFAULT_CONFIG) -> str:
    parts = []
    if config.add_noopener:
        parts.append("noopener")
    if config.add_noreferrer:
        parts.append("noreferrer")
    return " ".join(parts)


# --- HTML Rendering ---


def _attr(name: str, value: str) -> str:
    return f' {name}="{html.escape(value, quote=True)}"'


def _align_style(attrs: dict[str, Any]) -> str:
    align = attrs.get("textAlign")
    if isinstance(align, str) and align in TEXT_ALIGNMENTS and align != "left":
        return _attr("style", f"text-align: {align}")
    return ""


def _render_text(node: RichTextNode, config: RichTextConfig) -> str:
    out = html.escape(node.text or "", quote=False)
    for mark in node.marks:
        mark_type = mark.get("type", "")
        if mark_type == "link":
            href = sanitize_url(str((mark.get("attrs") or {}).get("href") or ""), config)
            if not href:
                continue
            target = _attr("target", "_blank") if config.open_links_in_new_tab else ""
            rel = build_link_rel(config)
            rel_attr = _attr("rel", rel) if rel else ""
            out = f"<a{_attr('href', href)}{target}{rel_attr}>{out}</a>"
            continue
        tag = MARK_TYPE_TO_TAG.get(mark_type)
        if tag:
            out = f"<{tag}>{out}</{tag}>"
    return out


class _Renderer:
    """Single-use renderer; holds the heading counter for one document."""

    def __init__(self, block_id: str, config: RichTextConfig):
        self.block_id = block_id
        self.config = config
        self.heading_count = 0

    def render(self, node: RichTextNode) -> str:
        t = node.type
        if t == "text":
            return _render_text(node, self.config)
        if t == "hardBreak":
            return "<br>"
        if t == "horizontalRule":
            return "<hr>"
        if t == "heading":
            return self._heading(node)
        if t == "codeBlock":
            language = node.attrs.get("language")
            cls = _attr("class", f"language-{language}") if language else ""
            return f"<pre><code{cls}>{html.escape(node_text(node), quote=False)}</code></pre>"
        if t == "image":
            src = sanitize_url(str(node.attrs.get("src") or ""), self.config)
            if not src:
                return ""
            return f"<img{_attr('src', src)}{_attr('alt', str(node.attrs.get('alt') or ''))}>"

        inner = "".join(self.render(child) for child in node.content)
        if t == "doc":
            return inner
        tag = NODE_TYPE_TO_TAG.get(t)
        if tag is None:
            # Unknown node: keep its content, drop the wrapper.
            return inner
        style = _align_style(node.attrs) if t == "paragraph" else ""
        if t == "orderedList":
            start = node.attrs.get("start")
            if isinstance(start, int) and start != 1:
                style += _attr("start", str(start))
        return f"<{tag}{style}>{inner}</{tag}>"

    def _heading(self, node: RichTextNode) -> str:
        level = heading_level(node)
        anchor = ""
        if node_text(node).strip():
            anchor = _attr("id", heading_anchor(self.block_id, self.heading_count))
            self.heading_count += 1
        inner = "".join(self.render(child) for child in node.content)
        return f"<h{level}{anchor}{_align_style(node.attrs)}>{inner}</h{level}>"


def render_node_html(
    node: dict[str, Any] | str | None,
    block_id: str = "",
    config: RichTextConfig = DEFAULT_CONFIG,
) -> str:
    """
    Render a document (or any subtree) to HTML.

    Heading anchors match the ids produced by iter_headings() for the
    same block id.
    """
    tree = RichTextNode.from_dict(parse_document(node))
    return _Renderer(block_id, config).render(tree)
