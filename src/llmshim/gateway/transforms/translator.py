"""Stream translation engine.

A translator is a per-response state machine. Feed it the decoded events of
one streaming response, in arrival order, through :meth:`consume`; each call
returns a :class:`Step` holding an optional normalized chunk and an optional
tool call that just completed (so tools can start before the stream ends).
:meth:`finalize` then assembles the aggregated :class:`UnaryResponse`.

Every ``consume`` call validates before it mutates: when it raises, the
accumulator is exactly as it was before the call, and ``finalize`` still
returns whatever had been accumulated.

Usage:
    translator = ClaudeStreamTranslator()
    async for payload in iter_sse_payloads(response.content):
        chunk, tool_call = translator.consume_payload(payload)
        ...
    response = translator.finalize()
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal, NamedTuple

from llmshim.core.transforms.content import (
    ContentBlock,
    Message,
    RedactedThinkingBlock,
    Role,
    TextBlock,
    ThinkingBlock,
)
from llmshim.core.transforms.stop_reason import FinishReason, to_finish_reason
from llmshim.core.transforms.types import (
    StreamChunk,
    TokenUsage,
    ToolCall,
    ToolDefinition,
    UnaryResponse,
)
from llmshim.gateway.errors import (
    DecodeError,
    ToolArgumentParseError,
    TranslatorClosedError,
    VendorError,
)

from .schema import (
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    ErrorEvent,
    InputJsonDelta,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    PingEvent,
    RedactedThinkingBlockModel,
    SignatureDelta,
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    ToolUseBlockModel,
    decode_event,
)

logger = logging.getLogger(__name__)

InvalidToolArgumentsPolicy = Literal["keep", "drop", "raise"]
TokenEstimator = Callable[[Sequence[Message], Sequence[ToolDefinition]], int]


class Step(NamedTuple):
    """Result of consuming one event."""

    chunk: StreamChunk | None = None
    tool_call: ToolCall | None = None


NOTHING = Step()


@dataclass
class TranslatorConfig:
    """Per-response translator settings.

    Attributes:
        model: Model name used if the stream never reports one.
        message_id: Response id used if the stream never reports one.
        on_invalid_tool_arguments: What to do when a tool call's arguments
            are not a JSON object. "keep" returns the call with ``input={}``
            and the verbatim string in ``raw_arguments``; "drop" discards the
            call; "raise" raises ToolArgumentParseError.
        token_estimator: Called at finalize to fill in prompt tokens when the
            vendor reported none.
    """

    model: str = ""
    message_id: str = ""
    on_invalid_tool_arguments: InvalidToolArgumentsPolicy = "keep"
    token_estimator: TokenEstimator | None = None


@dataclass
class PendingToolCall:
    """A tool call whose arguments are still streaming in."""

    id: str
    name: str
    arguments: str = ""


@dataclass
class TranslatorAccumulator:
    """Mutable per-response state. Owned by exactly one translator."""

    id: str = ""
    model: str = ""
    created: int = 0
    text: list[str] = field(default_factory=list)
    reasoning: list[str] = field(default_factory=list)
    signature: str | None = None
    redacted_thinking: list[str] = field(default_factory=list)
    open_tool_calls: dict[int, PendingToolCall] = field(default_factory=dict)
    tool_calls: list[ToolCall] = field(default_factory=list)
    prompt_tokens: int = 0
    completion_tokens: int = 0
    stop_reason: str | None = None
    finish_reason: FinishReason | None = None
    complete: bool = False


def parse_tool_arguments(arguments: str) -> dict[str, Any] | None:
    """Parse concatenated tool arguments.

    Empty or whitespace-only arguments mean "no arguments". Returns None when
    the text is not valid JSON or not a JSON object.
    """
    if not arguments.strip():
        return {}
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


class StreamTranslator:
    """Accumulator handling shared by every dialect's translator."""

    def __init__(
        self,
        config: TranslatorConfig | None = None,
        prompt: Sequence[Message] = (),
        tools: Sequence[ToolDefinition] = (),
    ):
        self.config = config or TranslatorConfig()
        self._prompt = tuple(prompt)
        self._tools = tuple(tools)
        self._acc: TranslatorAccumulator | None = TranslatorAccumulator()

    @property
    def accumulator(self) -> TranslatorAccumulator:
        if self._acc is None:
            raise TranslatorClosedError("translator already finalized")
        return self._acc

    @property
    def is_complete(self) -> bool:
        """True once the vendor signalled the end of the message."""
        return self.accumulator.complete

    @property
    def usage(self) -> TokenUsage:
        acc = self.accumulator
        return TokenUsage(acc.prompt_tokens, acc.completion_tokens)

    def _close_tool_call(self, pending: PendingToolCall) -> ToolCall | None:
        """Turn a pending call into a ToolCall, applying the invalid-arguments policy.

        Does not touch the accumulator; callers commit the result.

        Raises:
            ToolArgumentParseError: Under the "raise" policy.
        """
        arguments = parse_tool_arguments(pending.arguments)
        if arguments is not None:
            return ToolCall(id=pending.id, name=pending.name, input=arguments)

        policy = self.config.on_invalid_tool_arguments
        if policy == "raise":
            raise ToolArgumentParseError(pending.id, pending.name, pending.arguments)
        if policy == "drop":
            logger.warning(
                "Dropping tool call %s (%s): arguments are not a JSON object",
                pending.id,
                pending.name,
            )
            return None
        logger.warning(
            "Tool call %s (%s) has invalid arguments, keeping raw text",
            pending.id,
            pending.name,
        )
        return ToolCall(id=pending.id, name=pending.name, input={}, raw_arguments=pending.arguments)

    def _drain_open_tool_calls(self, acc: TranslatorAccumulator) -> None:
        """Best-effort close of calls left open by a truncated stream."""
        for index in sorted(acc.open_tool_calls):
            pending = acc.open_tool_calls[index]
            arguments = parse_tool_arguments(pending.arguments)
            if arguments is None:
                logger.warning(
                    "Discarding unterminated tool call %s (%s) at block %d",
                    pending.id,
                    pending.name,
                    index,
                )
                continue
            acc.tool_calls.append(ToolCall(id=pending.id, name=pending.name, input=arguments))
        acc.open_tool_calls.clear()

    def finalize(self) -> UnaryResponse:
        """Assemble the aggregated response. May be called once.

        Works whether or not the stream reached its end.

        Raises:
            TranslatorClosedError: If already finalized.
        """
        acc = self.accumulator

        prompt_tokens = acc.prompt_tokens
        if not prompt_tokens and self.config.token_estimator is not None:
            prompt_tokens = self.config.token_estimator(self._prompt, self._tools)

        self._drain_open_tool_calls(acc)

        content: list[ContentBlock] = []
        reasoning = "".join(acc.reasoning)
        if reasoning:
            content.append(ThinkingBlock(reasoning, acc.signature))
        content.extend(RedactedThinkingBlock(data) for data in acc.redacted_thinking)
        text = "".join(acc.text)
        if text:
            content.append(TextBlock(text))
        content.extend(call.to_block() for call in acc.tool_calls)

        self._acc = None
        return UnaryResponse(
            id=acc.id or self.config.message_id,
            model=acc.model or self.config.model,
            created=acc.created or int(time.time()),
            content=tuple(content),
            stop_reason=acc.stop_reason,
            finish_reason=acc.finish_reason,
            usage=TokenUsage(prompt_tokens, acc.completion_tokens),
        )


class ClaudeStreamTranslator(StreamTranslator):
    """Translates Anthropic Messages stream events."""

    def consume_payload(self, payload: dict[str, Any] | str | bytes) -> Step:
        """Decode a raw event payload and consume it.

        Raises:
            DecodeError: If the payload is not a known event.
        """
        return self.consume(decode_event(payload))

    def consume(self, event: StreamEvent) -> Step:
        """Apply one event to the accumulator.

        Raises:
            VendorError: On an ``error`` event.
            DecodeError: If a tool-call block is opened twice at one index.
            ToolArgumentParseError: Under the "raise" policy.
            TranslatorClosedError: If already finalized.
        """
        acc = self.accumulator
        logger.debug("Consuming %s event", event.type)

        if isinstance(event, PingEvent):
            return NOTHING

        if isinstance(event, MessageStartEvent):
            message = event.message
            if not acc.id:
                acc.id = message.id
            if not acc.model:
                acc.model = message.model
            if not acc.created:
                acc.created = int(time.time())
            acc.prompt_tokens = message.usage.prompt_tokens
            acc.completion_tokens = message.usage.output_tokens
            return Step(chunk=StreamChunk(index=0, role=Role.ASSISTANT))

        if isinstance(event, ContentBlockStartEvent):
            block = event.content_block
            if isinstance(block, ToolUseBlockModel):
                if event.index in acc.open_tool_calls:
                    raise DecodeError(f"Tool call block {event.index} opened twice", payload=event)
                acc.open_tool_calls[event.index] = PendingToolCall(id=block.id, name=block.name)
            elif isinstance(block, RedactedThinkingBlockModel):
                acc.redacted_thinking.append(block.data)
            return NOTHING

        if isinstance(event, ContentBlockDeltaEvent):
            return self._consume_delta(acc, event)

        if isinstance(event, ContentBlockStopEvent):
            pending = acc.open_tool_calls.get(event.index)
            if pending is None:
                return NOTHING
            tool_call = self._close_tool_call(pending)
            del acc.open_tool_calls[event.index]
            if tool_call is None:
                return NOTHING
            acc.tool_calls.append(tool_call)
            return Step(tool_call=tool_call)

        if isinstance(event, MessageDeltaEvent):
            acc.completion_tokens += event.output_tokens
            stop_reason = event.delta.stop_reason
            if stop_reason is None:
                return NOTHING
            acc.stop_reason = stop_reason.value
            acc.finish_reason = to_finish_reason(stop_reason)
            return Step(chunk=StreamChunk(index=0, finish_reason=acc.finish_reason))

        if isinstance(event, MessageStopEvent):
            acc.complete = True
            return NOTHING

        if isinstance(event, ErrorEvent):
            raise VendorError.from_payload(event.model_dump())

        raise DecodeError(f"Unsupported stream event {type(event).__name__}", payload=event)

    def _consume_delta(self, acc: TranslatorAccumulator, event: ContentBlockDeltaEvent) -> Step:
        delta = event.delta

        if isinstance(delta, TextDelta):
            acc.text.append(delta.text)
            return Step(chunk=StreamChunk(index=event.index, content=delta.text))

        if isinstance(delta, ThinkingDelta):
            acc.reasoning.append(delta.thinking)
            return Step(chunk=StreamChunk(index=event.index, reasoning=delta.thinking))

        if isinstance(delta, SignatureDelta):
            acc.signature = delta.signature
            return NOTHING

        if isinstance(delta, InputJsonDelta):
            pending = acc.open_tool_calls.get(event.index)
            if pending is None:
                logger.debug("Ignoring input_json_delta for block %d with no open tool call", event.index)
                return NOTHING
            pending.arguments += delta.partial_json
            return NOTHING

        return NOTHING
