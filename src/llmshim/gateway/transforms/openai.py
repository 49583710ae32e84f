"""OpenAI Chat Completions API transformer.

Converts OpenAI-format request bodies into the internal format (so they can
be sent to the Anthropic Messages API), encodes internal chunks and responses
as OpenAI wire objects, and translates OpenAI streaming responses with the
same accumulator the Anthropic translator uses.

OpenAI API Reference:
- Request: POST /chat/completions with {model, messages, tools, stream, max_tokens, temperature}
- Messages: [{role, content, tool_calls?, tool_call_id?}]
- Streaming: SSE with data: {"choices": [{"delta": {...}}]}
"""

from __future__ import annotations

import json
import logging
import mimetypes
import re
import time
from dataclasses import dataclass, replace
from typing import Any

from llmshim.core.transforms.content import (
    ContentBlock,
    ImageBlock,
    MediaSource,
    Message,
    Role,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from llmshim.core.transforms.normalize import normalize
from llmshim.core.transforms.stop_reason import FinishReason, parse_finish_reason
from llmshim.core.transforms.types import (
    InternalRequest,
    StreamChunk,
    ToolDefinition,
    UnaryResponse,
)
from llmshim.gateway.errors import DecodeError, VendorError

from .schema import ChatCompletionChunk, decode_openai_chunk
from .translator import NOTHING, PendingToolCall, Step, StreamTranslator

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4000
DONE_SSE = b"data: [DONE]\n\n"

SUPPORTED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

_DATA_URI_RE = re.compile(r"^data:(?P<media_type>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^,;]*)*?);base64,(?P<data>.*)$", re.S)


def parse_data_uri(url: str) -> tuple[str, str] | None:
    """Split a base64 data URI into (media type, payload).

    Returns None if ``url`` is not a base64 data URI.
    """
    match = _DATA_URI_RE.match(url)
    if match is None:
        return None
    return (match.group("media_type") or "").lower(), match.group("data")


def _image_from_url(url: str) -> ImageBlock | None:
    if url.startswith("data:"):
        parsed = parse_data_uri(url)
        if parsed is None:
            logger.warning("Skipping image: malformed data URI")
            return None
        media_type, data = parsed
        if media_type == "image/jpg":
            media_type = "image/jpeg"
        if media_type not in SUPPORTED_IMAGE_TYPES:
            logger.warning("Skipping image: unsupported media type %r", media_type)
            return None
        return ImageBlock(MediaSource(type="base64", media_type=media_type, data=data))
    if url.startswith(("http://", "https://")):
        media_type, _ = mimetypes.guess_type(url.split("?", 1)[0])
        return ImageBlock(MediaSource(type="url", media_type=media_type or "", url=url))
    logger.warning("Skipping image: unsupported URL scheme in %r", url[:40])
    return None


def _text_of(content: Any) -> str:
    """Text of an OpenAI content value (string or list of parts)."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(part.get("text", "") for part in content if part.get("type") == "text")
    return ""


def _user_blocks(content: Any) -> list[ContentBlock]:
    if isinstance(content, str):
        return [TextBlock(content)]
    blocks: list[ContentBlock] = []
    for part in content or []:
        part_type = part.get("type")
        if part_type == "text":
            blocks.append(TextBlock(part.get("text", "")))
        elif part_type == "image_url":
            image_url = part.get("image_url") or {}
            url = image_url if isinstance(image_url, str) else image_url.get("url", "")
            image = _image_from_url(url)
            if image is not None:
                blocks.append(image)
        else:
            logger.warning("Skipping unsupported content part %r", part_type)
    return blocks


def _tool_choice(choice: Any) -> dict[str, Any] | None:
    if choice is None:
        return None
    if choice == "auto":
        return {"type": "auto"}
    if choice == "required":
        return {"type": "any"}
    if choice == "none":
        return {"type": "none"}
    if isinstance(choice, dict) and choice.get("type") == "function":
        return {"type": "tool", "name": choice["function"]["name"]}
    logger.warning("Ignoring unsupported tool_choice %r", choice)
    return None


@dataclass
class OpenAITransformer:
    """Transforms OpenAI wire format to/from internal format."""

    default_max_tokens: int = DEFAULT_MAX_TOKENS

    def to_internal(self, body: dict[str, Any]) -> InternalRequest:
        """Convert an OpenAI Chat Completions request to internal format.

        System and developer messages are joined into ``system``; tool
        results become user ``tool_result`` blocks; the message list is
        normalized.

        Args:
            body: OpenAI request body.

        Returns:
            InternalRequest ready for the Anthropic transformer.
        """
        system_parts: list[str] = []
        messages: list[Message] = []

        for msg in body.get("messages", []):
            role = msg.get("role")
            content = msg.get("content")

            if role in ("system", "developer"):
                text = _text_of(content)
                if text:
                    system_parts.append(text)

            elif role == "user":
                messages.append(Message.user(_user_blocks(content)))

            elif role == "assistant":
                blocks: list[ContentBlock] = []
                text = _text_of(content)
                if text:
                    blocks.append(TextBlock(text))
                for tc in msg.get("tool_calls") or []:
                    function = tc.get("function", {})
                    try:
                        arguments = json.loads(function.get("arguments") or "{}")
                    except json.JSONDecodeError:
                        arguments = {}
                    blocks.append(ToolUseBlock(id=tc["id"], name=function.get("name", ""), input=arguments))
                messages.append(Message.assistant(blocks))

            elif role == "tool":
                messages.append(
                    Message.user([ToolResultBlock(tool_use_id=msg.get("tool_call_id", ""), content=_text_of(content))])
                )

            else:
                logger.warning("Skipping message with unsupported role %r", role)

        stop = body.get("stop")
        if isinstance(stop, str):
            stop_sequences: tuple[str, ...] = (stop,)
        else:
            stop_sequences = tuple(stop or ())

        tools = tuple(
            ToolDefinition(
                name=tool["function"]["name"],
                description=tool["function"].get("description"),
                input_schema=tool["function"].get("parameters") or {"type": "object", "properties": {}},
            )
            for tool in body.get("tools", [])
            if tool.get("type", "function") == "function"
        )

        return InternalRequest(
            messages=tuple(normalize(messages)),
            system="\n\n".join(system_parts) or None,
            tools=tools,
            tool_choice=_tool_choice(body.get("tool_choice")),
            max_tokens=body.get("max_completion_tokens") or body.get("max_tokens") or self.default_max_tokens,
            temperature=body.get("temperature"),
            top_p=body.get("top_p"),
            stop_sequences=stop_sequences,
            stream=bool(body.get("stream", False)),
            model=body.get("model"),
        )

    def chunk_to_dict(self, chunk: StreamChunk, id: str, model: str, created: int) -> dict[str, Any]:
        """Encode a chunk as a ``chat.completion.chunk`` object.

        There is always exactly one choice, at index 0.
        """
        delta: dict[str, Any] = {}
        if chunk.role is not None:
            delta["role"] = chunk.role.value
            delta["content"] = ""
        if chunk.content is not None:
            delta["content"] = chunk.content
        if chunk.reasoning is not None:
            delta["reasoning_content"] = chunk.reasoning

        return {
            "id": id,
            "object": "chat.completion.chunk",
            "created": created,
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "delta": delta,
                    "finish_reason": chunk.finish_reason.value if chunk.finish_reason else None,
                }
            ],
        }

    def chunk_to_sse(self, chunk: StreamChunk, id: str, model: str, created: int) -> bytes:
        """Encode a chunk as an SSE ``data:`` frame."""
        data = json.dumps(self.chunk_to_dict(chunk, id, model, created))
        return f"data: {data}\n\n".encode()

    def from_internal(self, response: UnaryResponse) -> dict[str, Any]:
        """Encode a unary response as a ``chat.completion`` object."""
        message: dict[str, Any] = {"role": "assistant", "content": response.text or None}
        if response.reasoning:
            message["reasoning_content"] = response.reasoning
        if response.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.input)},
                }
                for call in response.tool_calls
            ]

        finish_reason = response.finish_reason or FinishReason.STOP
        return {
            "id": response.id,
            "object": "chat.completion",
            "created": response.created,
            "model": response.model,
            "choices": [{"index": 0, "message": message, "finish_reason": finish_reason.value}],
            "usage": {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            },
        }


class OpenAIStreamTranslator(StreamTranslator):
    """Translates OpenAI ``chat.completion.chunk`` payloads.

    OpenAI streams tool calls by index without an explicit end marker, so a
    call is complete when a later index opens or a finish reason arrives.
    If one chunk closes several calls, the step carries the last of them;
    all of them are in the finalized response.
    """

    def consume_payload(self, payload: dict[str, Any] | str | bytes) -> Step:
        """Decode a raw chunk payload and consume it."""
        return self.consume(decode_openai_chunk(payload))

    def consume(self, chunk: ChatCompletionChunk) -> Step:
        """Apply one chunk to the accumulator.

        Raises:
            VendorError: If the payload carries an ``error`` object.
            ToolArgumentParseError: Under the "raise" policy.
            TranslatorClosedError: If already finalized.
        """
        acc = self.accumulator

        if chunk.error is not None:
            raise VendorError.from_payload({"error": chunk.error})

        choice = chunk.choices[0] if chunk.choices else None
        finish_reason = None
        if choice is not None and choice.finish_reason:
            try:
                finish_reason = parse_finish_reason(choice.finish_reason)
            except ValueError as e:
                raise DecodeError(f"Unknown finish_reason {choice.finish_reason!r}", payload=chunk) from e

        # Apply tool-call fragments to copies; state is committed only once
        # every call this chunk completes has been closed successfully.
        delta = choice.delta if choice is not None else None
        staged = {i: replace(pending) for i, pending in acc.open_tool_calls.items()}
        superseded: list[PendingToolCall] = []
        opened: list[int] = []
        for tc in (delta.tool_calls or []) if delta is not None else []:
            pending = staged.get(tc.index)
            if tc.id and (pending is None or pending.id != tc.id):
                if pending is not None:
                    superseded.append(pending)
                pending = staged[tc.index] = PendingToolCall(id=tc.id, name=tc.function.name or "")
                opened.append(tc.index)
            elif pending is None:
                logger.debug("Ignoring tool call delta for unopened index %d", tc.index)
                continue
            elif tc.function.name and not (tc.id and pending.name):
                # Names stream in fragments; a repeated id may repeat the whole name.
                pending.name += tc.function.name
            pending.arguments += tc.function.arguments or ""

        to_close: list[int] = []
        if finish_reason is not None:
            to_close = sorted(staged)
        elif opened:
            first_new = min(opened)
            to_close = sorted(i for i in staged if i < first_new)
        closed = [self._close_tool_call(pending) for pending in superseded]
        closed += [self._close_tool_call(staged[i]) for i in to_close]

        if not acc.id:
            acc.id = chunk.id
        if not acc.model:
            acc.model = chunk.model
        if not acc.created:
            acc.created = chunk.created or int(time.time())
        if chunk.usage is not None:
            acc.prompt_tokens = chunk.usage.prompt_tokens
            acc.completion_tokens = chunk.usage.completion_tokens

        acc.open_tool_calls = {i: pending for i, pending in staged.items() if i not in to_close}
        completed = [call for call in closed if call is not None]
        acc.tool_calls.extend(completed)

        out = StreamChunk(index=0)
        if delta is not None:
            if delta.role == "assistant":
                out = StreamChunk(index=0, role=Role.ASSISTANT)
            if delta.content:
                acc.text.append(delta.content)
                out = StreamChunk(index=0, role=out.role, content=delta.content)
            reasoning = delta.reasoning_content or delta.reasoning
            if reasoning:
                acc.reasoning.append(reasoning)
                out = StreamChunk(index=0, role=out.role, content=out.content, reasoning=reasoning)

        if finish_reason is not None:
            acc.finish_reason = finish_reason
            acc.stop_reason = choice.finish_reason
            acc.complete = True
            out = StreamChunk(
                index=0,
                role=out.role,
                content=out.content,
                reasoning=out.reasoning,
                finish_reason=finish_reason,
            )

        tool_call = completed[-1] if completed else None
        if out == StreamChunk(index=0):
            return Step(tool_call=tool_call) if tool_call else NOTHING
        return Step(chunk=out, tool_call=tool_call)
