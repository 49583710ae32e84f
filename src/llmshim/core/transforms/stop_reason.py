"""Stop reasons (Anthropic vocabulary) and finish reasons (internal/OpenAI)."""

from enum import Enum


class StopReason(str, Enum):
    """Why the vendor stopped generating."""

    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"
    TOOL_USE = "tool_use"
    PAUSE_TURN = "pause_turn"
    REFUSAL = "refusal"


class FinishReason(str, Enum):
    """Internal finish reason. Values match OpenAI's ``finish_reason``."""

    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"


# Must stay total over StopReason.
FINISH_REASON_MAP: dict[StopReason, FinishReason] = {
    StopReason.END_TURN: FinishReason.STOP,
    StopReason.MAX_TOKENS: FinishReason.LENGTH,
    StopReason.STOP_SEQUENCE: FinishReason.STOP,
    StopReason.TOOL_USE: FinishReason.TOOL_CALLS,
    StopReason.PAUSE_TURN: FinishReason.STOP,
    StopReason.REFUSAL: FinishReason.CONTENT_FILTER,
}

STOP_REASON_MAP: dict[FinishReason, StopReason] = {
    FinishReason.STOP: StopReason.END_TURN,
    FinishReason.LENGTH: StopReason.MAX_TOKENS,
    FinishReason.TOOL_CALLS: StopReason.TOOL_USE,
    FinishReason.CONTENT_FILTER: StopReason.REFUSAL,
}


def to_finish_reason(reason: StopReason) -> FinishReason:
    """Map a vendor stop reason to the internal finish reason."""
    return FINISH_REASON_MAP[reason]


def to_stop_reason(reason: FinishReason) -> StopReason:
    """Map an internal finish reason back to Anthropic's vocabulary."""
    return STOP_REASON_MAP[reason]


def parse_finish_reason(value: str) -> FinishReason:
    """Parse an OpenAI ``finish_reason`` string.

    The legacy ``function_call`` value is read as ``tool_calls``.

    Raises:
        ValueError: If ``value`` is not a known finish reason.
    """
    if value == "function_call":
        return FinishReason.TOOL_CALLS
    return FinishReason(value)
