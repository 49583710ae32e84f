"""Internal records produced by the translators and transformers.

These are the provider-agnostic shapes that every dialect is converted
into and out of. Content blocks themselves live in ``content.py``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .content import (
    BlocksContent,
    ContentBlock,
    Message,
    RedactedThinkingBlock,
    Role,
    TextBlock,
    ThinkingBlock,
    ToolUseBlock,
)
from .stop_reason import FinishReason


@dataclass(frozen=True)
class TokenUsage:
    """Token usage statistics."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True)
class ToolCall:
    """A completed tool invocation.

    ``raw_arguments`` is only set when the streamed arguments could not be
    parsed and the call was kept anyway; ``input`` is then ``{}``.
    """

    id: str
    name: str
    input: dict[str, Any]
    raw_arguments: str | None = None

    def to_block(self) -> ToolUseBlock:
        return ToolUseBlock(id=self.id, name=self.name, input=self.input)


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of an available tool."""

    name: str
    description: str | None
    input_schema: dict[str, Any]  # JSON Schema, always type=object

    def to_anthropic(self) -> dict[str, Any]:
        tool: dict[str, Any] = {"name": self.name, "input_schema": self.input_schema}
        if self.description:
            tool["description"] = self.description
        return tool

    def to_openai(self) -> dict[str, Any]:
        function: dict[str, Any] = {"name": self.name, "parameters": self.input_schema}
        if self.description:
            function["description"] = self.description
        return {"type": "function", "function": function}


@dataclass(frozen=True)
class StreamChunk:
    """Minimal incremental output unit.

    At most one of ``content``/``reasoning``/``finish_reason`` is set, except
    for the opening chunk which only carries ``role``.
    """

    index: int = 0
    role: Role | None = None
    content: str | None = None
    reasoning: str | None = None
    finish_reason: FinishReason | None = None


@dataclass(frozen=True)
class UnaryResponse:
    """A complete response, either received whole or aggregated from a stream."""

    id: str
    model: str
    created: int
    content: tuple[ContentBlock, ...] = ()
    stop_reason: str | None = None
    finish_reason: FinishReason | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)
    role: Role = Role.ASSISTANT

    @property
    def text(self) -> str:
        return "".join(b.text for b in self.content if isinstance(b, TextBlock))

    @property
    def reasoning(self) -> str:
        return "".join(b.thinking for b in self.content if isinstance(b, ThinkingBlock))

    @property
    def tool_calls(self) -> tuple[ToolUseBlock, ...]:
        return tuple(b for b in self.content if isinstance(b, ToolUseBlock))

    @property
    def redacted_thinking(self) -> tuple[RedactedThinkingBlock, ...]:
        return tuple(b for b in self.content if isinstance(b, RedactedThinkingBlock))

    def to_message(self) -> Message:
        """The response as an assistant turn, ready to append to a conversation."""
        return Message(role=self.role, content=BlocksContent(self.content))


@dataclass(frozen=True)
class InternalRequest:
    """Provider-agnostic request format."""

    messages: tuple[Message, ...]
    system: str | None = None
    tools: tuple[ToolDefinition, ...] = ()
    tool_choice: dict[str, Any] | None = None  # Anthropic shape
    max_tokens: int = 4096
    temperature: float | None = None
    top_p: float | None = None
    stop_sequences: tuple[str, ...] = ()
    stream: bool = False
    model: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
