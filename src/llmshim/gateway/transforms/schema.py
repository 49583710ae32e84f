"""Pydantic models for the vendor wire formats.

This is the decode boundary: raw JSON is validated here and turned into
the internal content model. Content blocks, stream events and deltas are
discriminated on their ``type`` field; message content is discriminated by
shape (string vs. list). Anything that fails validation surfaces as
:class:`~llmshim.gateway.errors.DecodeError`.

Models use ``extra="allow"`` so fields the vendors add later pass through.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from llmshim.core.transforms.content import (
    BlocksContent,
    DocumentBlock,
    ImageBlock,
    MediaSource,
    Message,
    RedactedThinkingBlock,
    Role,
    TextBlock,
    TextContent,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from llmshim.core.transforms.stop_reason import StopReason
from llmshim.gateway.errors import DecodeError


class WireModel(BaseModel):
    model_config = ConfigDict(extra="allow")


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


class MediaSourceModel(WireModel):
    """Source of an image or document block."""

    type: Literal["base64", "url", "text"]
    media_type: str | None = None
    data: str | None = None
    url: str | None = None

    def to_source(self) -> MediaSource:
        return MediaSource(
            type=self.type,
            media_type=self.media_type or "",
            data=self.data or "",
            url=self.url or "",
        )


class TextBlockModel(WireModel):
    type: Literal["text"]
    text: str = ""

    def to_block(self) -> TextBlock:
        return TextBlock(self.text)


class ThinkingBlockModel(WireModel):
    type: Literal["thinking"]
    thinking: str = ""
    signature: str | None = None

    def to_block(self) -> ThinkingBlock:
        return ThinkingBlock(self.thinking, self.signature)


class RedactedThinkingBlockModel(WireModel):
    type: Literal["redacted_thinking"]
    data: str = ""

    def to_block(self) -> RedactedThinkingBlock:
        return RedactedThinkingBlock(self.data)


class ToolUseBlockModel(WireModel):
    type: Literal["tool_use"]
    id: str
    name: str
    input: Any = Field(default_factory=dict)

    def to_block(self) -> ToolUseBlock:
        return ToolUseBlock(id=self.id, name=self.name, input=self.input)


class ImageBlockModel(WireModel):
    type: Literal["image"]
    source: MediaSourceModel

    def to_block(self) -> ImageBlock:
        return ImageBlock(self.source.to_source())


class DocumentBlockModel(WireModel):
    type: Literal["document"]
    source: MediaSourceModel
    title: str | None = None
    context: str | None = None

    def to_block(self) -> DocumentBlock:
        return DocumentBlock(self.source.to_source(), title=self.title, context=self.context)


ToolResultPart = Annotated[Union[TextBlockModel, ImageBlockModel], Field(discriminator="type")]


class ToolResultBlockModel(WireModel):
    type: Literal["tool_result"]
    tool_use_id: str
    content: str | list[ToolResultPart] = ""
    is_error: bool | None = None

    def to_block(self) -> ToolResultBlock:
        if isinstance(self.content, str):
            content: str | tuple[TextBlock | ImageBlock, ...] = self.content
        else:
            content = tuple(part.to_block() for part in self.content)
        return ToolResultBlock(self.tool_use_id, content, bool(self.is_error))


RequestBlockModel = Annotated[
    Union[
        TextBlockModel,
        ThinkingBlockModel,
        RedactedThinkingBlockModel,
        ToolUseBlockModel,
        ToolResultBlockModel,
        ImageBlockModel,
        DocumentBlockModel,
    ],
    Field(discriminator="type"),
]

ResponseBlockModel = Annotated[
    Union[TextBlockModel, ThinkingBlockModel, RedactedThinkingBlockModel, ToolUseBlockModel],
    Field(discriminator="type"),
]


class MessageModel(WireModel):
    """A message in the conversation."""

    role: Literal["user", "assistant"]
    content: str | list[RequestBlockModel]

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v: Any) -> Any:
        """Missing content is read as an empty string; the normalizer drops it later."""
        return "" if v is None else v

    def to_message(self) -> Message:
        role = Role(self.role)
        if isinstance(self.content, str):
            return Message(role=role, content=TextContent(self.content))
        return Message(role=role, content=BlocksContent(tuple(b.to_block() for b in self.content)))


# ---------------------------------------------------------------------------
# Requests and responses
# ---------------------------------------------------------------------------


class ToolModel(WireModel):
    """Definition of an available tool."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] = Field(default_factory=lambda: {"type": "object"})

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("tool name cannot be empty")
        return v


class MessagesRequest(WireModel):
    """Anthropic Messages API request body."""

    messages: list[MessageModel]
    max_tokens: int = 4096
    model: str | None = None
    system: str | list[TextBlockModel] | None = None
    tools: list[ToolModel] = Field(default_factory=list)
    tool_choice: dict[str, Any] | None = None
    temperature: float | None = None
    top_p: float | None = None
    stop_sequences: list[str] = Field(default_factory=list)
    stream: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("max_tokens")
    @classmethod
    def validate_max_tokens(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_tokens must be positive")
        return v

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float | None) -> float | None:
        if v is not None and not 0 <= v <= 1:
            raise ValueError("temperature must be between 0 and 1")
        return v


class UsageModel(WireModel):
    input_tokens: int | None = None
    output_tokens: int = 0
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None

    @property
    def prompt_tokens(self) -> int:
        """Input tokens including cache writes and reads."""
        return (
            (self.input_tokens or 0)
            + (self.cache_creation_input_tokens or 0)
            + (self.cache_read_input_tokens or 0)
        )


class MessageResponse(WireModel):
    """Anthropic Messages API response body (also the ``message_start`` payload)."""

    id: str = ""
    type: Literal["message"] = "message"
    role: Literal["assistant"] = "assistant"
    model: str = ""
    content: list[ResponseBlockModel] = Field(default_factory=list)
    stop_reason: StopReason | None = None
    stop_sequence: str | None = None
    usage: UsageModel = Field(default_factory=UsageModel)


# ---------------------------------------------------------------------------
# Stream events
# ---------------------------------------------------------------------------


class TextDelta(WireModel):
    type: Literal["text_delta"]
    text: str


class ThinkingDelta(WireModel):
    type: Literal["thinking_delta"]
    thinking: str


class SignatureDelta(WireModel):
    type: Literal["signature_delta"]
    signature: str


class InputJsonDelta(WireModel):
    type: Literal["input_json_delta"]
    partial_json: str


Delta = Annotated[
    Union[TextDelta, ThinkingDelta, SignatureDelta, InputJsonDelta],
    Field(discriminator="type"),
]


class MessageStartEvent(WireModel):
    type: Literal["message_start"]
    message: MessageResponse


class ContentBlockStartEvent(WireModel):
    type: Literal["content_block_start"]
    index: int
    content_block: ResponseBlockModel


class ContentBlockDeltaEvent(WireModel):
    type: Literal["content_block_delta"]
    index: int
    delta: Delta


class ContentBlockStopEvent(WireModel):
    type: Literal["content_block_stop"]
    index: int


class MessageDeltaBody(WireModel):
    stop_reason: StopReason | None = None
    stop_sequence: str | None = None
    # Some proxies nest usage here instead of at the event level.
    usage: UsageModel | None = None


class MessageDeltaEvent(WireModel):
    type: Literal["message_delta"]
    delta: MessageDeltaBody = Field(default_factory=MessageDeltaBody)
    usage: UsageModel | None = None

    @property
    def output_tokens(self) -> int:
        usage = self.usage or self.delta.usage
        return usage.output_tokens if usage else 0


class MessageStopEvent(WireModel):
    type: Literal["message_stop"]


class PingEvent(WireModel):
    type: Literal["ping"]


class ErrorBody(WireModel):
    type: str = "api_error"
    message: str = ""


class ErrorEvent(WireModel):
    type: Literal["error"]
    error: ErrorBody


StreamEvent = Annotated[
    Union[
        MessageStartEvent,
        ContentBlockStartEvent,
        ContentBlockDeltaEvent,
        ContentBlockStopEvent,
        MessageDeltaEvent,
        MessageStopEvent,
        PingEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# OpenAI chat.completion.chunk
# ---------------------------------------------------------------------------


class FunctionDelta(WireModel):
    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(WireModel):
    index: int = 0
    id: str | None = None
    type: str | None = None
    function: FunctionDelta = Field(default_factory=FunctionDelta)


class ChoiceDelta(WireModel):
    role: str | None = None
    content: str | None = None
    reasoning_content: str | None = None
    reasoning: str | None = None
    refusal: str | None = None
    tool_calls: list[ToolCallDelta] | None = None


class ChunkChoice(WireModel):
    index: int = 0
    delta: ChoiceDelta = Field(default_factory=ChoiceDelta)
    finish_reason: str | None = None


class CompletionUsage(WireModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0


class ChatCompletionChunk(WireModel):
    id: str = ""
    model: str = ""
    created: int = 0
    choices: list[ChunkChoice] = Field(default_factory=list)
    usage: CompletionUsage | None = None
    error: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

_EVENT_ADAPTER: TypeAdapter[Any] = TypeAdapter(StreamEvent)
_MESSAGE_ADAPTER = TypeAdapter(MessageModel)
_REQUEST_ADAPTER = TypeAdapter(MessagesRequest)
_RESPONSE_ADAPTER = TypeAdapter(MessageResponse)
_CHUNK_ADAPTER = TypeAdapter(ChatCompletionChunk)


def _decode(adapter: TypeAdapter[Any], payload: Any, what: str) -> Any:
    try:
        if isinstance(payload, (str, bytes, bytearray)):
            return adapter.validate_json(payload)
        return adapter.validate_python(payload)
    except ValidationError as e:
        raise DecodeError(
            f"Invalid {what}: {e.error_count()} validation error(s)",
            payload=payload,
            errors=e.errors(include_url=False, include_context=False),
        ) from e


def decode_event(payload: dict[str, Any] | str | bytes) -> StreamEvent:
    """Decode one Anthropic stream event.

    Args:
        payload: Event as a dict or as JSON text.

    Raises:
        DecodeError: If the payload matches no known event shape.
    """
    return _decode(_EVENT_ADAPTER, payload, "stream event")


def decode_message(payload: dict[str, Any] | str | bytes) -> Message:
    """Decode one wire message into the internal model."""
    model: MessageModel = _decode(_MESSAGE_ADAPTER, payload, "message")
    return model.to_message()


def decode_response(payload: dict[str, Any] | str | bytes) -> MessageResponse:
    """Decode a non-streaming Messages API response body."""
    return _decode(_RESPONSE_ADAPTER, payload, "message response")


def decode_openai_chunk(payload: dict[str, Any] | str | bytes) -> ChatCompletionChunk:
    """Decode one OpenAI ``chat.completion.chunk`` payload."""
    return _decode(_CHUNK_ADAPTER, payload, "chat completion chunk")


def validate_request(body: dict[str, Any]) -> MessagesRequest:
    """Validate an Anthropic Messages API request body.

    Raises:
        DecodeError: With pydantic's error list in ``errors``.
    """
    return _decode(_REQUEST_ADAPTER, body, "messages request")
