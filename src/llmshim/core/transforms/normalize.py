"""Conversation normalizer.

Vendor APIs reject conversations that do not start with a user turn,
that repeat a role twice in a row, that contain empty messages, or whose
final assistant prefill ends in whitespace. ``normalize`` repairs any
caller-supplied sequence into that form.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from .content import (
    BlocksContent,
    Content,
    Message,
    Role,
    TextBlock,
    TextContent,
)

CONVERSATION_START_TEXT = "Starting the conversation…"


def _merge(first: Content, second: Content) -> Content:
    """Merge the content of two consecutive same-role messages."""
    if isinstance(first, TextContent) and isinstance(second, TextContent):
        return TextContent(f"{first.text}\n{second.text}")
    if isinstance(first, TextContent):
        head: tuple = (TextBlock(first.text),)
    else:
        head = first.non_empty_blocks()
    if isinstance(second, TextContent):
        tail: tuple = (TextBlock(second.text),)
    else:
        tail = second.non_empty_blocks()
    return BlocksContent(head + tail)


def _rstrip(content: Content) -> Content:
    if isinstance(content, TextContent):
        return TextContent(content.text.rstrip())
    return BlocksContent(
        tuple(
            TextBlock(block.text.rstrip()) if isinstance(block, TextBlock) else block
            for block in content.blocks
        )
    )


def normalize(messages: Sequence[Message]) -> list[Message]:
    """Return ``messages`` repaired into a valid alternating conversation.

    1. Empty messages are dropped.
    2. Consecutive messages with the same role are merged.
    3. If the first surviving message is from the assistant, a placeholder
       user message is prepended.
    4. Trailing whitespace is trimmed from a final assistant message.

    Never raises. An input with no non-empty message yields ``[]``.

    Args:
        messages: Conversation in caller order.

    Returns:
        New list satisfying the alternation invariants.
    """
    result: list[Message] = []

    for message in messages:
        if message.is_empty():
            continue
        if result and result[-1].role == message.role:
            previous = result[-1]
            result[-1] = replace(previous, content=_merge(previous.content, message.content))
        else:
            result.append(message)

    if not result:
        return result

    # Checked after dropping empties: an empty leading message must not decide.
    if result[0].role == Role.ASSISTANT:
        result.insert(0, Message.user(CONVERSATION_START_TEXT))

    last = result[-1]
    if last.role == Role.ASSISTANT:
        result[-1] = replace(last, content=_rstrip(last.content))

    return result
