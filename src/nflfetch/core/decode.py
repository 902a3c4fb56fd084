"""
Content-type dispatch for response payloads.

The kind of a payload is decided once from the response header (or
forced by the caller) and mapped to one of three decoders. Parsing
CSV or Parquet into records is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import orjson


class ContentKind(str, Enum):
    """Payload classification."""

    JSON = "json"
    TEXT = "text"
    BINARY = "binary"


# Declared dataset formats and the payload kind they travel as
FORMAT_KINDS: dict[str, ContentKind] = {
    "json": ContentKind.JSON,
    "csv": ContentKind.TEXT,
    "txt": ContentKind.TEXT,
    "text": ContentKind.TEXT,
    "parquet": ContentKind.BINARY,
    "rds": ContentKind.BINARY,
    "binary": ContentKind.BINARY,
}


def classify_content_type(content_type: str | None) -> ContentKind:
    """Classify a Content-Type header value.

    ``application/json`` is JSON, ``text/*`` is text, anything else
    (including a missing header) is binary.
    """
    if not content_type:
        return ContentKind.BINARY
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type == "application/json":
        return ContentKind.JSON
    if media_type.startswith("text/"):
        return ContentKind.TEXT
    return ContentKind.BINARY


def kind_for_format(fmt: str | ContentKind) -> ContentKind:
    """Map a declared dataset format (``csv``, ``parquet``, ...) to a kind."""
    if isinstance(fmt, ContentKind):
        return fmt
    return FORMAT_KINDS.get(fmt.lower().lstrip("."), ContentKind.BINARY)


def charset_of(content_type: str | None, default: str = "utf-8") -> str:
    """Extract the charset parameter of a Content-Type header."""
    if not content_type:
        return default
    for param in content_type.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return default


def _decode_json(content: bytes, content_type: str) -> Any:
    if not content.strip():
        return None
    return orjson.loads(content)


def _decode_text(content: bytes, content_type: str) -> str:
    return content.decode(charset_of(content_type))


def _decode_binary(content: bytes, content_type: str) -> bytes:
    return content


@dataclass
class Decoders:
    """One decoder per content kind.

    Each decoder receives the raw body and the Content-Type header.
    Collaborators replace individual slots to plug in their own parsing.
    """

    json: Callable[[bytes, str], Any] = _decode_json
    text: Callable[[bytes, str], Any] = _decode_text
    binary: Callable[[bytes, str], Any] = _decode_binary

    def for_kind(self, kind: ContentKind) -> Callable[[bytes, str], Any]:
        if kind is ContentKind.JSON:
            return self.json
        if kind is ContentKind.TEXT:
            return self.text
        return self.binary

    def decode(self, kind: ContentKind, content: bytes, content_type: str = "") -> Any:
        return self.for_kind(kind)(content, content_type)
