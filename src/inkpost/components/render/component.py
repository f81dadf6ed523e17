"""
Render component - post HTML and navigation outline.

Key behaviors:
- Blocks render in list order; dispatch is by block type
- Unknown block types render nothing
- Headings are collected across ALL rich-text blocks of a post, then
  nested with a stack (see build_outline)
- Rendering is pure: the same blocks and payloads always give the same
  HTML and the same outline
"""

from __future__ import annotations

import html
import re
from collections.abc import Mapping, Sequence
from typing import Any

from inkpost.components.mapper import resolve_image_url
from inkpost.components.richtext import (
    Heading,
    iter_headings,
    render_node_html,
    sanitize_url,
)
from inkpost.domain.blocks import (
    BLOCK_TYPES,
    BlockPayload,
    BlockRef,
    CodePayload,
    ImagePayload,
    ImageTextPayload,
    RichTextPayload,
    TablePayload,
    VideoPayload,
    default_payload,
    parse_payload,
)

from .models import OutlineNode, RenderedDocument, RenderedSection, VideoSource

DEFAULT_ACTIVATION_THRESHOLD = 100

# --- Video URL detection ---

YOUTUBE_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/embed/([^&\n?#]+)"),
    re.compile(r"youtube\.com/v/([^&\n?#]+)"),
)

DRIVE_PATTERNS = (
    re.compile(r"/file/d/([^/]+)"),
    re.compile(r"id=([^&\n?#]+)"),
    re.compile(r"/open\?id=([^&\n?#]+)"),
)

DIRECT_VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov", ".avi")


def _first_match(patterns: Sequence[re.Pattern[str]], url: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def classify_video_url(url: str) -> VideoSource:
    """
    Detect the kind of a pasted video URL.

    YouTube and Google Drive links are rewritten to their embed URLs.
    Cloudinary and direct media files are used as-is.

    Raises:
        ValueError: URL is not a recognized video link.
    """
    url = (url or "").strip()
    if url:
        youtube_id = _first_match(YOUTUBE_PATTERNS, url)
        if youtube_id:
            return VideoSource(f"https://www.youtube.com/embed/{youtube_id}", "youtube")

        drive_id = _first_match(DRIVE_PATTERNS, url)
        if drive_id:
            return VideoSource(f"https://drive.google.com/file/d/{drive_id}/preview", "drive")

        if "cloudinary.com" in url:
            return VideoSource(url, "cloudinary")

        if any(ext in url.lower() for ext in DIRECT_VIDEO_EXTENSIONS):
            return VideoSource(url, "direct")

    raise ValueError(
        "Invalid video URL. Please provide a YouTube, Google Drive, Cloudinary, "
        "or direct video link."
    )


# --- Outline ---


def _payload_for(block: BlockRef, payloads: Mapping[str, Any]) -> BlockPayload:
    raw = payloads.get(block.id)
    if raw is None:
        return default_payload(block.type)
    return parse_payload(block.type, raw)


def extract_headings(blocks: Sequence[BlockRef], payloads: Mapping[str, Any]) -> list[Heading]:
    """All headings of a post, in document order; `index` is post-wide."""
    headings: list[Heading] = []
    for block in blocks:
        if block.type != "richtext":
            continue
        payload = _payload_for(block, payloads)
        if not isinstance(payload, RichTextPayload):
            continue
        for heading in iter_headings(payload.doc, block.id):
            headings.append(
                Heading(id=heading.id, text=heading.text, level=heading.level, index=len(headings))
            )
    return headings


def build_outline(headings: Sequence[Heading]) -> list[OutlineNode]:
    """
    Nest headings into a tree.

    Keeps a stack of open headings. For each heading, pop while the top
    has a level >= the new one, attach under the remaining top (or as a
    new root), then push.
    """
    roots: list[OutlineNode] = []
    stack: list[OutlineNode] = []
    for heading in headings:
        node = OutlineNode(heading=heading)
        while stack and stack[-1].heading.level >= heading.level:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)
    return roots


def active_heading(
    scroll_offset: float,
    anchors: Sequence[tuple[str, float | None]],
    threshold: float = DEFAULT_ACTIVATION_THRESHOLD,
) -> str | None:
    """
    Heading to highlight for a scroll position.

    `anchors` holds `(heading_id, top)` in document order, where `top` is
    the anchor's document offset, or None when it is not rendered yet.
    The active heading is the last one whose top is within `threshold` of
    the viewport top; if none qualifies the first heading is active.
    """
    if not anchors:
        return None
    active: str | None = None
    for heading_id, top in anchors:
        if top is None:
            continue
        if top - scroll_offset <= threshold:
            active = heading_id
    return active if active is not None else anchors[0][0]


# --- Block HTML ---


def _attr(name: str, value: str) -> str:
    return f' {name}="{html.escape(value, quote=True)}"'


def _image_src(payload: ImagePayload | ImageTextPayload, image_origin: str | None) -> str | None:
    url = payload.url or resolve_image_url(image_origin, payload.image_key)
    return sanitize_url(url) if url else None


def _render_richtext(block: BlockRef, payload: RichTextPayload, image_origin: str | None) -> str:
    return render_node_html(payload.doc, block_id=block.id)


def _render_imagetext(block: BlockRef, payload: ImageTextPayload, image_origin: str | None) -> str:
    src = _image_src(payload, image_origin)
    img = f'<img{_attr("src", src)} alt="">' if src else ""
    lines = [html.escape(line, quote=False) for line in payload.text.split("\n")]
    body = f"<p>{'<br>'.join(lines)}</p>" if payload.text else ""
    if not img and not body:
        return ""
    return (
        f'<div class="image-text image-{payload.alignment}">'
        f'{img}<div class="image-text-body">{body}</div></div>'
    )


def _render_image(block: BlockRef, payload: ImagePayload, image_origin: str | None) -> str:
    src = _image_src(payload, image_origin)
    if not src:
        return ""
    return f'<figure class="image"><img{_attr("src", src)} alt=""></figure>'


def _render_video(block: BlockRef, payload: VideoPayload, image_origin: str | None) -> str:
    if not payload.url:
        return ""
    if payload.video_type is None:
        try:
            source = classify_video_url(payload.url)
        except ValueError:
            return ""
        payload = payload.model_copy(
            update={"url": source.embed_url, "video_type": source.video_type}
        )
    video_type = payload.video_type
    url = sanitize_url(payload.url)
    if not url:
        return ""
    if payload.is_embed:
        return (
            f'<div class="video video-{video_type}"><iframe{_attr("src", url)}'
            ' allow="accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope;'
            ' picture-in-picture" allowfullscreen title="Video player"></iframe></div>'
        )
    return (
        f'<div class="video video-{video_type}"><video{_attr("src", url)}'
        ' controls controlslist="nodownload"></video></div>'
    )


def _render_table(block: BlockRef, payload: TablePayload, image_origin: str | None) -> str:
    classes = ["table"]
    if payload.bordered:
        classes.append("table-bordered")
    if payload.striped:
        classes.append("table-striped")

    def cell(tag: str, value: str, align: str) -> str:
        style = _attr("style", f"text-align: {align}") if align != "left" else ""
        return f"<{tag}{style}>{html.escape(value, quote=False)}</{tag}>"

    head = "".join(cell("th", h, a) for h, a in zip(payload.headers, payload.alignment))
    body = "".join(
        "<tr>" + "".join(cell("td", v, a) for v, a in zip(row, payload.alignment)) + "</tr>"
        for row in payload.rows
    )
    return (
        f'<table class="{" ".join(classes)}"><thead><tr>{head}</tr></thead>'
        f"<tbody>{body}</tbody></table>"
    )


def _render_code(block: BlockRef, payload: CodePayload, image_origin: str | None) -> str:
    if not payload.code.strip():
        return ""
    caption = html.escape(payload.language, quote=False)
    if payload.filename:
        caption += f' <span class="filename">{html.escape(payload.filename, quote=False)}</span>'
    lines = payload.code.split("\n")
    if payload.show_line_numbers:
        body = "\n".join(
            f'<span class="line" data-line="{n}">{html.escape(line, quote=False)}</span>'
            for n, line in enumerate(lines, start=1)
        )
    else:
        body = html.escape(payload.code, quote=False)
    return (
        f'<figure class="code-block"{_attr("data-language", payload.language)}>'
        f"<figcaption>{caption}</figcaption>"
        f'<pre><code{_attr("class", f"language-{payload.language}")}>{body}</code></pre>'
        "</figure>"
    )


BLOCK_RENDERERS: dict[str, Any] = {
    "richtext": _render_richtext,
    "imagetext": _render_imagetext,
    "image": _render_image,
    "video": _render_video,
    "table": _render_table,
    "code": _render_code,
}


def render_block(block: BlockRef, payload: Any, image_origin: str | None = None) -> str:
    """HTML for one block; empty for unknown types."""
    if block.type not in BLOCK_TYPES:
        return ""
    parsed = parse_payload(block.type, payload) if payload is not None else default_payload(block.type)
    return BLOCK_RENDERERS[block.type](block, parsed, image_origin)  # type: ignore[no-any-return]


def render_document(
    blocks: Sequence[BlockRef],
    payloads: Mapping[str, Any],
    image_origin: str | None = None,
) -> RenderedDocument:
    """
    Render a post body and derive its outline.

    Heading anchor ids in the HTML match the ids in `headings`.
    """
    sections: list[RenderedSection] = []
    for block in blocks:
        if block.type not in BLOCK_TYPES:
            continue
        content = render_block(block, payloads.get(block.id), image_origin)
        sections.append(
            RenderedSection(
                block_id=block.id,
                type=block.type,
                html=(
                    f'<div class="block block-{block.type}"{_attr("data-block-id", block.id)}>'
                    f"{content}</div>"
                ),
            )
        )

    headings = extract_headings([b for b in blocks if b.type in BLOCK_TYPES], payloads)
    return RenderedDocument(
        html="\n".join(s.html for s in sections),
        sections=tuple(sections),
        headings=tuple(headings),
        outline=tuple(build_outline(headings)),
    )
