"""Tests for the content model."""

import pytest

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
    allowed_in_request,
    allowed_in_response,
)


class TestBlockEmptiness:
    """Tests for per-variant is_empty()."""

    @pytest.mark.parametrize(
        "block, empty",
        [
            (TextBlock("hi"), False),
            (TextBlock(" \n\t"), True),
            (ThinkingBlock("hmm"), False),
            (ThinkingBlock("", signature="sig"), True),
            (RedactedThinkingBlock("EqkC..."), False),
            (RedactedThinkingBlock(""), True),
            (ToolUseBlock("toolu_1", "search", {"q": "x"}), False),
            (ToolUseBlock("toolu_1", "search", {}), False),
            (ToolUseBlock("", "search", {}), True),
            (ToolUseBlock("toolu_1", " ", {}), True),
            (ToolUseBlock("toolu_1", "search", "not an object"), True),
            (ToolUseBlock("toolu_1", "search", [1, 2]), True),
            (ToolResultBlock("toolu_1", ""), False),
            (ToolResultBlock("", "result"), True),
        ],
    )
    def test_is_empty(self, block, empty):
        """Each variant applies its own emptiness rule."""
        assert block.is_empty() is empty

    def test_image_requires_media_type_and_data(self):
        """A base64 image needs both a media type and a payload."""
        assert not ImageBlock(MediaSource("base64", "image/png", data="iVBOR")).is_empty()
        assert ImageBlock(MediaSource("base64", "", data="iVBOR")).is_empty()
        assert ImageBlock(MediaSource("base64", "image/png", data="  ")).is_empty()

    def test_url_image_needs_url(self):
        """A URL image is empty only when the URL is blank."""
        assert not ImageBlock(MediaSource("url", url="https://example.com/cat.png")).is_empty()
        assert ImageBlock(MediaSource("url", media_type="image/png")).is_empty()

    def test_document_payload(self):
        """A text document needs data; a base64 document also needs a media type."""
        assert not DocumentBlock(MediaSource("text", "text/plain", data="body")).is_empty()
        assert DocumentBlock(MediaSource("text", "text/plain", data="")).is_empty()
        assert DocumentBlock(MediaSource("base64", "", data="JVBER")).is_empty()


class TestCapabilitySets:
    """Tests for which blocks are valid in requests and responses."""

    def test_base_blocks_valid_everywhere(self):
        """Text, thinking and tool_use blocks are valid in both directions."""
        for block in (TextBlock("a"), ThinkingBlock("b"), ToolUseBlock("id", "n", {})):
            assert allowed_in_request(block)
            assert allowed_in_response(block)

    def test_request_only_blocks(self):
        """Images, documents and tool results are request-only."""
        source = MediaSource("base64", "image/png", data="x")
        for block in (ImageBlock(source), DocumentBlock(source), ToolResultBlock("id", "r")):
            assert allowed_in_request(block)
            assert not allowed_in_response(block)

    def test_redacted_thinking_response_only(self):
        """Redacted thinking only comes from the vendor."""
        block = RedactedThinkingBlock("data")

        assert allowed_in_response(block)
        assert not allowed_in_request(block)


class TestMessage:
    """Tests for Message construction and emptiness."""

    def test_user_from_string(self):
        """A string becomes text content."""
        message = Message.user("hello")

        assert message.role == Role.USER
        assert message.content == TextContent("hello")
        assert message.content.kind == "text"

    def test_assistant_from_blocks(self):
        """A block sequence becomes a block tuple."""
        message = Message.assistant([TextBlock("a"), TextBlock("b")])

        assert message.content == BlocksContent((TextBlock("a"), TextBlock("b")))
        assert message.content.kind == "blocks"

    def test_empty_when_every_block_empty(self):
        """A message is empty if all its blocks are."""
        assert Message.user([TextBlock(""), ToolUseBlock("", "", {})]).is_empty()
        assert not Message.user([TextBlock(""), TextBlock("x")]).is_empty()

    def test_text_joins_text_blocks(self):
        """The text property ignores non-text blocks."""
        message = Message.assistant([TextBlock("a"), ToolUseBlock("id", "n", {}), TextBlock("b")])

        assert message.text == "a\nb"

    def test_role_values_are_wire_strings(self):
        """Roles serialize as the vendor role strings."""
        assert Role.USER.value == "user"
        assert Role.ASSISTANT.value == "assistant"
