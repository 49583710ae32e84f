"""Server-sent events framing.

Both vendors stream JSON payloads as ``data:`` lines. Anthropic also sends
``event:`` lines (redundant with the payload's ``type``), OpenAI ends with a
``data: [DONE]`` sentinel.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

from llmshim.gateway.errors import DecodeError


class _Done:
    def __repr__(self) -> str:
        return "SSE_DONE"


SSE_DONE = _Done()


def parse_sse_line(line: str | bytes) -> dict[str, Any] | _Done | None:
    """Parse one SSE line.

    Returns:
        The decoded JSON payload of a ``data:`` line, ``SSE_DONE`` for the
        ``[DONE]`` sentinel, or None for blank, comment and non-data lines.

    Raises:
        DecodeError: If the line is not UTF-8 or a ``data:`` line does not
            hold a JSON object.
    """
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"SSE line is not valid UTF-8: {e.reason}", payload=line) from e
    line = line.strip()

    if not line.startswith("data:"):
        return None

    data_str = line[5:].strip()
    if data_str == "[DONE]":
        return SSE_DONE

    try:
        data = json.loads(data_str)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON in SSE data line: {e.msg}", payload=data_str) from e
    if not isinstance(data, dict):
        raise DecodeError("SSE data line is not a JSON object", payload=data_str)
    return data


async def iter_sse_payloads(lines: AsyncIterable[bytes]) -> AsyncIterator[dict[str, Any]]:
    """Yield decoded payloads from a stream of SSE lines until ``[DONE]``.

    ``lines`` is typically ``aiohttp.ClientResponse.content``.
    """
    async for line in lines:
        payload = parse_sse_line(line)
        if payload is None:
            continue
        if payload is SSE_DONE:
            return
        yield payload
