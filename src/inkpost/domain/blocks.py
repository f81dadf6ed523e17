"""
Block payload model.

Every post is an ordered list of typed blocks. The payload of a block is a
tagged union keyed by the block type; this union (not the denormalized
storage row) is the in-memory form used everywhere above the mapper.

Editor wire forms are accepted as input: camelCase keys (`imageKey`,
`showLineNumbers`, `fileName`), `key` for plain image blocks, a video's
`type` holding the video kind, and rich text given as a JSON string or a
bare document tree.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union, get_args

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from inkpost.rules.models import BlocksRules

BlockType = Literal["richtext", "imagetext", "image", "video", "table", "code"]
BLOCK_TYPES: tuple[str, ...] = get_args(BlockType)

Alignment = Literal["left", "right"]
ColumnAlign = Literal["left", "center", "right"]
VideoType = Literal["youtube", "drive", "cloudinary", "direct"]

# Platform embeds render in an iframe; the rest are direct media files.
EMBED_VIDEO_TYPES: frozenset[str] = frozenset({"youtube", "drive"})

IMAGE_BLOCK_TYPES: frozenset[str] = frozenset({"imagetext", "image"})

# Older editor builds used component names as type tags.
BLOCK_TYPE_ALIASES: dict[str, str] = {"imageuploader": "image", "videoplayer": "video"}


class UnknownBlockTypeError(ValueError):
    """Block type tag is not one of the supported types."""


class BlockPayloadError(ValueError):
    """Payload does not match the shape required by its block type."""


# --- Rich text documents ---


def empty_document() -> dict[str, Any]:
    return {"type": "doc", "content": []}


def coerce_document(value: Any) -> dict[str, Any]:
    """
    Normalize a rich-text value into a document tree.

    Dicts pass through. Strings are parsed as JSON; a string that is not a
    JSON object becomes a single paragraph holding the raw text.
    """
    if value is None or value == "":
        return empty_document()
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        return {
            "type": "doc",
            "content": [{"type": "paragraph", "content": [{"type": "text", "text": value}]}],
        }
    raise BlockPayloadError("Rich text content must be a document object or JSON string.")


# --- Payload variants ---


class RichTextPayload(BaseModel):
    type: Literal["richtext"] = "richtext"
    doc: dict[str, Any] = Field(default_factory=empty_document)

    @field_validator("doc", mode="before")
    @classmethod
    def _coerce_doc(cls, value: Any) -> dict[str, Any]:
        return coerce_document(value)


class ImageTextPayload(BaseModel):
    type: Literal["imagetext"] = "imagetext"
    text: str = ""
    image_key: str | None = Field(
        default=None, validation_alias=AliasChoices("image_key", "imageKey")
    )
    alignment: Alignment = "left"
    # Resolved from image_key at read time; never persisted.
    url: str | None = Field(default=None, exclude=True)


class ImagePayload(BaseModel):
    type: Literal["image"] = "image"
    image_key: str | None = Field(
        default=None, validation_alias=AliasChoices("image_key", "imageKey", "key")
    )
    url: str | None = Field(default=None, exclude=True)


class VideoPayload(BaseModel):
    type: Literal["video"] = "video"
    url: str = ""
    video_type: VideoType | None = Field(
        default=None, validation_alias=AliasChoices("video_type", "videoType")
    )

    @property
    def is_embed(self) -> bool:
        return self.video_type in EMBED_VIDEO_TYPES


class TablePayload(BaseModel):
    type: Literal["table"] = "table"
    headers: list[str] = Field(default_factory=lambda: ["Column 1", "Column 2", "Column 3"])
    alignment: list[ColumnAlign] = Field(default_factory=list)
    rows: list[list[str]] = Field(default_factory=lambda: [["", "", ""], ["", "", ""]])
    bordered: bool = True
    striped: bool = False

    @model_validator(mode="after")
    def _check_grid(self) -> TablePayload:
        width = len(self.headers)
        for i, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(f"Row {i} has {len(row)} cells, expected {width}.")
        # Missing alignments default to left; extras are dropped.
        self.alignment = (list(self.alignment) + ["left"] * width)[:width]
        return self


class CodePayload(BaseModel):
    type: Literal["code"] = "code"
    code: str = ""
    language: str = "plaintext"
    filename: str | None = Field(
        default=None, validation_alias=AliasChoices("filename", "fileName")
    )
    show_line_numbers: bool = Field(
        default=True, validation_alias=AliasChoices("show_line_numbers", "showLineNumbers")
    )


BlockPayload = Annotated[
    Union[
        RichTextPayload,
        ImageTextPayload,
        ImagePayload,
        VideoPayload,
        TablePayload,
        CodePayload,
    ],
    Field(discriminator="type"),
]

PAYLOAD_MODELS: dict[str, type[BaseModel]] = {
    "richtext": RichTextPayload,
    "imagetext": ImageTextPayload,
    "image": ImagePayload,
    "video": VideoPayload,
    "table": TablePayload,
    "code": CodePayload,
}

_payload_adapter: TypeAdapter[Any] = TypeAdapter(BlockPayload)


def ensure_block_type(value: str) -> BlockType:
    if value not in BLOCK_TYPES:
        raise UnknownBlockTypeError(f"Unknown block type '{value}'.")
    return value  # type: ignore[return-value]


def default_payload(block_type: str) -> BlockPayload:
    """Empty payload for a freshly inserted block."""
    return PAYLOAD_MODELS[ensure_block_type(block_type)]()  # type: ignore[return-value]


def _normalize_wire(block_type: str, data: dict[str, Any]) -> dict[str, Any]:
    data = dict(data)
    tag = data.get("type")

    if block_type == "richtext":
        # A bare document tree carries its own "type": "doc".
        if "doc" not in data:
            return {"type": "richtext", "doc": data}
        data["type"] = "richtext"
        return data

    if block_type == "video" and tag not in (None, "video"):
        data.setdefault("video_type", tag)
        data["type"] = "video"
        return data

    if tag is None:
        data["type"] = block_type
    elif tag != block_type:
        raise BlockPayloadError(
            f"Payload of type '{tag}' does not match block type '{block_type}'."
        )
    return data


def parse_payload(block_type: str, data: Any) -> BlockPayload:
    """
    Validate `data` as the payload for a block of `block_type`.

    Raises:
        UnknownBlockTypeError: block_type is not supported.
        BlockPayloadError: the payload shape does not fit the block type.
    """
    ensure_block_type(block_type)

    if isinstance(data, BaseModel):
        tag = getattr(data, "type", None)
        if tag != block_type:
            raise BlockPayloadError(
                f"Payload of type '{tag}' does not match block type '{block_type}'."
            )
        return data  # type: ignore[return-value]

    if block_type == "richtext" and (data is None or isinstance(data, str)):
        return RichTextPayload(doc=coerce_document(data))

    if data is None:
        return default_payload(block_type)

    if not isinstance(data, dict):
        raise BlockPayloadError(f"Payload for '{block_type}' must be an object.")

    try:
        return _payload_adapter.validate_python(_normalize_wire(block_type, data))  # type: ignore[no-any-return]
    except ValidationError as e:
        raise BlockPayloadError(f"Invalid '{block_type}' payload: {e}") from e


def image_key_of(payload: BlockPayload) -> str | None:
    """External image object referenced by a payload, if any."""
    if isinstance(payload, (ImagePayload, ImageTextPayload)):
        return payload.image_key or None
    return None


class BlockValidator:
    """Enforce the configured limits on a post's block list."""

    def __init__(self, rules: BlocksRules):
        self.rules = rules

    def validate(self, payloads: list[BlockPayload]) -> None:
        """
        Raises:
            ValueError: If any limit is exceeded.
        """
        if len(payloads) > self.rules.max_blocks_per_post:
            raise ValueError(
                f"Too many blocks ({len(payloads)} > {self.rules.max_blocks_per_post})."
            )
        for payload in payloads:
            self.validate_one(payload)

    def validate_one(self, payload: BlockPayload) -> None:
        if payload.type not in self.rules.allowed_types:
            raise ValueError(f"Block type '{payload.type}' is not allowed.")

        if isinstance(payload, RichTextPayload):
            size = len(json.dumps(payload.doc))
            if size > self.rules.max_richtext_bytes:
                raise ValueError(
                    f"Rich text exceeds size limit ({size} > {self.rules.max_richtext_bytes})."
                )
        elif isinstance(payload, CodePayload):
            size = len(payload.code.encode("utf-8"))
            if size > self.rules.max_code_bytes:
                raise ValueError(
                    f"Code block exceeds size limit ({size} > {self.rules.max_code_bytes})."
                )
        elif isinstance(payload, TablePayload):
            cells = len(payload.headers) * max(len(payload.rows), 1)
            if cells > self.rules.max_table_cells:
                raise ValueError(
                    f"Table too large ({cells} cells > {self.rules.max_table_cells})."
                )


class BlockRef(BaseModel):
    """Position-free handle on a block: its id and type tag."""

    id: str
    type: str
