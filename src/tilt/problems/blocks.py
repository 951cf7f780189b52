"""Content blocks: strict tagged union parsed at the storage boundary.

A problem's question and answer are ordered sequences of blocks stored as
serialized JSON text. A block is either markdown text or a media URL; the
``type`` tag decides which, and media URLs must be absolute http(s) URLs.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator


class BlockParseError(ValueError):
    """Stored or submitted block data does not match the tagged-union shape."""


class _Block(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class MarkdownBlock(_Block):
    """Markdown (with math) rendered client-side."""

    type: Literal["markdown"]
    content: str


class _MediaBlock(_Block):
    content: str

    @field_validator("content")
    @classmethod
    def require_http_url(cls, v: str) -> str:
        parsed = urlparse(v.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = "media block content must be an absolute http(s) URL"
            raise ValueError(msg)
        return v.strip()


class VideoBlock(_MediaBlock):
    type: Literal["video"]


class ImageBlock(_MediaBlock):
    type: Literal["image"]


ContentBlock = Annotated[MarkdownBlock | VideoBlock | ImageBlock, Field(discriminator="type")]

_blocks_adapter: TypeAdapter[list[ContentBlock]] = TypeAdapter(list[ContentBlock])


def parse_blocks(raw: Any) -> list[ContentBlock]:  # noqa: ANN401
    """
    Parse a block sequence from serialized text or already-decoded JSON.

    Raises:
        BlockParseError: If the data is not valid JSON or any block fails validation.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            msg = f"blocks are not valid JSON: {e.msg}"
            raise BlockParseError(msg) from e
    try:
        return _blocks_adapter.validate_python(raw)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        msg = f"invalid blocks: {errors}"
        raise BlockParseError(msg) from e


def dump_blocks(blocks: list[ContentBlock]) -> str:
    """Serialize blocks to the stored text form."""
    return json.dumps([b.model_dump() for b in blocks])
