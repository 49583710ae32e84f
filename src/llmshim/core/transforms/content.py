"""Content model shared by every dialect.

A message holds either plain text or an ordered tuple of typed content
blocks. On the wire the two are told apart by shape (string vs. list); the
decoder in ``llmshim.gateway.transforms.schema`` picks the variant once and
from then on the ``kind`` discriminant is authoritative.

Blocks fall into three capability sets:

- Base: valid in requests, responses and stream deltas (text, thinking,
  tool_use).
- Request-only: only a caller builds these (image, document, tool_result).
- Response-only: only the vendor produces these (redacted_thinking).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Literal, Union


class Role(str, Enum):
    """Conversation role. Values are the wire strings."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class MediaSource:
    """Payload of an image or document block."""

    type: Literal["base64", "url", "text"]
    media_type: str = ""
    data: str = ""
    url: str = ""

    @property
    def payload(self) -> str:
        return self.url if self.type == "url" else self.data


@dataclass(frozen=True)
class TextBlock:
    text: str

    type: ClassVar[str] = "text"

    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class ThinkingBlock:
    """Visible model reasoning. The signature lets the vendor verify it."""

    thinking: str
    signature: str | None = None

    type: ClassVar[str] = "thinking"

    def is_empty(self) -> bool:
        return not self.thinking.strip()


@dataclass(frozen=True)
class RedactedThinkingBlock:
    """Reasoning the vendor returns encrypted; passed back verbatim."""

    data: str

    type: ClassVar[str] = "redacted_thinking"

    def is_empty(self) -> bool:
        return not self.data.strip()


@dataclass(frozen=True)
class ToolUseBlock:
    id: str
    name: str
    input: Any

    type: ClassVar[str] = "tool_use"

    def is_empty(self) -> bool:
        return not self.id.strip() or not self.name.strip() or not isinstance(self.input, Mapping)


@dataclass(frozen=True)
class ImageBlock:
    source: MediaSource

    type: ClassVar[str] = "image"

    def is_empty(self) -> bool:
        if not self.source.payload.strip():
            return True
        return self.source.type == "base64" and not self.source.media_type.strip()


@dataclass(frozen=True)
class DocumentBlock:
    source: MediaSource
    title: str | None = None
    context: str | None = None

    type: ClassVar[str] = "document"

    def is_empty(self) -> bool:
        if not self.source.payload.strip():
            return True
        return self.source.type == "base64" and not self.source.media_type.strip()


@dataclass(frozen=True)
class ToolResultBlock:
    """Result of a tool call, sent back by the caller in a user message.

    ``content`` is either a string or a tuple of text/image blocks.
    """

    tool_use_id: str
    content: str | tuple[TextBlock | ImageBlock, ...] = ""
    is_error: bool = False

    type: ClassVar[str] = "tool_result"

    def is_empty(self) -> bool:
        return not self.tool_use_id.strip()


ContentBlock = Union[
    TextBlock,
    ThinkingBlock,
    RedactedThinkingBlock,
    ToolUseBlock,
    ToolResultBlock,
    ImageBlock,
    DocumentBlock,
]

BASE_BLOCKS: tuple[type, ...] = (TextBlock, ThinkingBlock, ToolUseBlock)
REQUEST_ONLY_BLOCKS: tuple[type, ...] = (ImageBlock, DocumentBlock, ToolResultBlock)
RESPONSE_ONLY_BLOCKS: tuple[type, ...] = (RedactedThinkingBlock,)


def allowed_in_request(block: ContentBlock) -> bool:
    """True if a caller may send ``block`` in a request."""
    return isinstance(block, BASE_BLOCKS + REQUEST_ONLY_BLOCKS)


def allowed_in_response(block: ContentBlock) -> bool:
    """True if ``block`` may appear in a vendor response or stream."""
    return isinstance(block, BASE_BLOCKS + RESPONSE_ONLY_BLOCKS)


@dataclass(frozen=True)
class TextContent:
    text: str

    kind: ClassVar[Literal["text"]] = "text"

    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class BlocksContent:
    blocks: tuple[ContentBlock, ...] = ()

    kind: ClassVar[Literal["blocks"]] = "blocks"

    def is_empty(self) -> bool:
        return all(block.is_empty() for block in self.blocks)

    def non_empty_blocks(self) -> tuple[ContentBlock, ...]:
        return tuple(block for block in self.blocks if not block.is_empty())


Content = Union[TextContent, BlocksContent]


def make_content(value: str | Content | Sequence[ContentBlock]) -> Content:
    """Wrap a string or block sequence in the matching content variant."""
    if isinstance(value, (TextContent, BlocksContent)):
        return value
    if isinstance(value, str):
        return TextContent(value)
    return BlocksContent(tuple(value))


@dataclass(frozen=True)
class Message:
    """One conversation turn."""

    role: Role
    content: Content

    @classmethod
    def user(cls, content: str | Content | Sequence[ContentBlock]) -> Message:
        return cls(role=Role.USER, content=make_content(content))

    @classmethod
    def assistant(cls, content: str | Content | Sequence[ContentBlock]) -> Message:
        return cls(role=Role.ASSISTANT, content=make_content(content))

    def is_empty(self) -> bool:
        return self.content.is_empty()

    @property
    def text(self) -> str:
        """Plain text of the message, joining text blocks with newlines."""
        if self.content.kind == "text":
            return self.content.text
        return "\n".join(b.text for b in self.content.blocks if isinstance(b, TextBlock))
