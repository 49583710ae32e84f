"""Anthropic Messages API transformer.

Converts between Anthropic Messages API bodies and the internal format.
Request bodies are validated through the wire schema on the way in and
normalized on the way out, so whatever the caller assembled is repaired
into a conversation the API accepts.

Anthropic API Reference:
- Request: POST /v1/messages with {messages, max_tokens, model, stream, tools, system}
- Response: {id, type, role, content, model, stop_reason, usage}
- Streaming: SSE events (message_start, content_block_start/delta/stop, message_delta, message_stop)
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from llmshim.core.transforms.content import (
    ContentBlock,
    DocumentBlock,
    ImageBlock,
    MediaSource,
    Message,
    RedactedThinkingBlock,
    TextBlock,
    TextContent,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from llmshim.core.transforms.normalize import normalize
from llmshim.core.transforms.stop_reason import StopReason, to_finish_reason, to_stop_reason
from llmshim.core.transforms.types import (
    InternalRequest,
    TokenUsage,
    ToolDefinition,
    UnaryResponse,
)

from .schema import decode_response, validate_request


_STOP_REASONS = frozenset(reason.value for reason in StopReason)


def _generate_message_id() -> str:
    """Generate a unique message ID in Anthropic format."""
    return f"msg_{int(time.time() * 1000)}"


def source_to_wire(source: MediaSource) -> dict[str, Any]:
    if source.type == "url":
        return {"type": "url", "url": source.url}
    wire = {"type": source.type, "data": source.data}
    if source.media_type:
        wire["media_type"] = source.media_type
    return wire


def block_to_wire(block: ContentBlock) -> dict[str, Any]:
    """Serialize one content block to its wire dict."""
    if isinstance(block, TextBlock):
        return {"type": "text", "text": block.text}
    if isinstance(block, ThinkingBlock):
        wire: dict[str, Any] = {"type": "thinking", "thinking": block.thinking}
        if block.signature is not None:
            wire["signature"] = block.signature
        return wire
    if isinstance(block, RedactedThinkingBlock):
        return {"type": "redacted_thinking", "data": block.data}
    if isinstance(block, ToolUseBlock):
        return {"type": "tool_use", "id": block.id, "name": block.name, "input": block.input}
    if isinstance(block, ToolResultBlock):
        content = (
            block.content
            if isinstance(block.content, str)
            else [block_to_wire(part) for part in block.content]
        )
        wire = {"type": "tool_result", "tool_use_id": block.tool_use_id, "content": content}
        if block.is_error:
            wire["is_error"] = True
        return wire
    if isinstance(block, ImageBlock):
        return {"type": "image", "source": source_to_wire(block.source)}
    if isinstance(block, DocumentBlock):
        wire = {"type": "document", "source": source_to_wire(block.source)}
        if block.title:
            wire["title"] = block.title
        if block.context:
            wire["context"] = block.context
        return wire
    raise TypeError(f"Unknown content block {type(block).__name__}")


def message_to_wire(message: Message) -> dict[str, Any]:
    """Serialize a message, keeping the string/list shape of its content."""
    if isinstance(message.content, TextContent):
        content: str | list[dict[str, Any]] = message.content.text
    else:
        content = [block_to_wire(block) for block in message.content.blocks]
    return {"role": message.role.value, "content": content}


@dataclass
class AnthropicTransformer:
    """Transforms Anthropic API format to/from internal format."""

    def to_internal(self, body: dict[str, Any]) -> InternalRequest:
        """Convert an Anthropic Messages API request to internal format.

        Args:
            body: Anthropic request body with messages, max_tokens, etc.

        Returns:
            InternalRequest with provider-agnostic format

        Raises:
            DecodeError: If the body does not validate.
        """
        request = validate_request(body)

        system = request.system
        if isinstance(system, list):
            system = "\n".join(block.text for block in system)

        return InternalRequest(
            messages=tuple(message.to_message() for message in request.messages),
            system=system,
            tools=tuple(
                ToolDefinition(name=tool.name, description=tool.description, input_schema=tool.input_schema)
                for tool in request.tools
            ),
            tool_choice=request.tool_choice,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            top_p=request.top_p,
            stop_sequences=tuple(request.stop_sequences),
            stream=request.stream,
            model=request.model,
            metadata=request.metadata,
        )

    def to_upstream(self, request: InternalRequest, model: str | None = None) -> dict[str, Any]:
        """Build a Messages API request body.

        The conversation is normalized first.

        Args:
            request: Internal request.
            model: Model to use; overrides ``request.model``.

        Returns:
            Request dict ready for POST /v1/messages. ``model`` is omitted
            when neither argument names one.
        """
        body: dict[str, Any] = {}
        model = model or request.model
        if model:
            body["model"] = model
        body["messages"] = [message_to_wire(m) for m in normalize(request.messages)]
        body["max_tokens"] = request.max_tokens
        if request.system:
            body["system"] = request.system
        if request.tools:
            body["tools"] = [tool.to_anthropic() for tool in request.tools]
        if request.tool_choice:
            body["tool_choice"] = request.tool_choice
        if request.stop_sequences:
            body["stop_sequences"] = list(request.stop_sequences)
        if request.temperature is not None:
            body["temperature"] = request.temperature
        if request.top_p is not None:
            body["top_p"] = request.top_p
        if request.metadata:
            body["metadata"] = request.metadata
        if request.stream:
            body["stream"] = True
        return body

    def from_upstream(self, body: dict[str, Any] | str | bytes) -> UnaryResponse:
        """Convert a non-streaming Messages API response to internal format.

        Raises:
            DecodeError: If the body is not a Messages response.
        """
        response = decode_response(body)
        stop_reason = response.stop_reason
        return UnaryResponse(
            id=response.id,
            model=response.model,
            created=int(time.time()),
            content=tuple(block.to_block() for block in response.content),
            stop_reason=stop_reason.value if stop_reason else None,
            finish_reason=to_finish_reason(stop_reason) if stop_reason else None,
            usage=TokenUsage(response.usage.prompt_tokens, response.usage.output_tokens),
        )

    def from_internal(self, response: UnaryResponse) -> dict[str, Any]:
        """Convert an internal response to a Messages API response body."""
        stop_reason = response.stop_reason
        if stop_reason is None and response.finish_reason is not None:
            stop_reason = to_stop_reason(response.finish_reason).value
        elif stop_reason is not None and stop_reason not in _STOP_REASONS:
            # OpenAI-sourced responses carry OpenAI finish reasons here
            stop_reason = to_stop_reason(response.finish_reason).value if response.finish_reason else None

        return {
            "id": response.id or _generate_message_id(),
            "type": "message",
            "role": "assistant",
            "model": response.model,
            "content": [block_to_wire(block) for block in response.content],
            "stop_reason": stop_reason,
            "stop_sequence": None,
            "usage": {
                "input_tokens": response.usage.prompt_tokens,
                "output_tokens": response.usage.completion_tokens,
            },
        }
