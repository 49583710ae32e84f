"""Pytest configuration and fixtures."""

import pytest


def message_start(input_tokens: int = 10, output_tokens: int = 1, **message) -> dict:
    """Build a message_start event payload."""
    return {
        "type": "message_start",
        "message": {
            "id": "msg_01XFDUDYJgAACzvnptvVoYEL",
            "type": "message",
            "role": "assistant",
            "model": "claude-sonnet-4-5",
            "content": [],
            "stop_reason": None,
            "stop_sequence": None,
            "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
            **message,
        },
    }


def text_delta(text: str, index: int = 0) -> dict:
    return {"type": "content_block_delta", "index": index, "delta": {"type": "text_delta", "text": text}}


def json_delta(partial_json: str, index: int = 1) -> dict:
    return {
        "type": "content_block_delta",
        "index": index,
        "delta": {"type": "input_json_delta", "partial_json": partial_json},
    }


def tool_use_start(tool_id: str = "toolu_01", name: str = "get_weather", index: int = 1) -> dict:
    return {
        "type": "content_block_start",
        "index": index,
        "content_block": {"type": "tool_use", "id": tool_id, "name": name, "input": {}},
    }


def block_stop(index: int) -> dict:
    return {"type": "content_block_stop", "index": index}


def message_delta(stop_reason: str | None = "end_turn", output_tokens: int = 15) -> dict:
    return {
        "type": "message_delta",
        "delta": {"stop_reason": stop_reason, "stop_sequence": None},
        "usage": {"output_tokens": output_tokens},
    }


MESSAGE_STOP = {"type": "message_stop"}
PING = {"type": "ping"}


@pytest.fixture
def text_stream_events():
    """A complete text-only stream: "Hello" split over two deltas."""
    return [
        message_start(),
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
        PING,
        text_delta("Hel"),
        text_delta("lo"),
        block_stop(0),
        message_delta("end_turn", 15),
        MESSAGE_STOP,
    ]


@pytest.fixture
def tool_stream_events():
    """A stream with leading text and one tool call split over two deltas."""
    return [
        message_start(),
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
        text_delta("Checking."),
        block_stop(0),
        tool_use_start("toolu_01", "get_weather", 1),
        json_delta('{"a":', 1),
        json_delta("1}", 1),
        block_stop(1),
        message_delta("tool_use", 20),
        MESSAGE_STOP,
    ]
