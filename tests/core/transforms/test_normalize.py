"""Tests for the conversation normalizer."""

from llmshim.core.transforms.content import (
    BlocksContent,
    ImageBlock,
    MediaSource,
    Message,
    Role,
    TextBlock,
    TextContent,
    ToolResultBlock,
    ToolUseBlock,
)
from llmshim.core.transforms.normalize import CONVERSATION_START_TEXT, normalize


def assert_conversation_invariants(messages: list[Message]) -> None:
    assert messages, "conversation must not be empty"
    assert messages[0].role == Role.USER
    for previous, current in zip(messages, messages[1:]):
        assert previous.role != current.role
    for message in messages:
        assert not message.is_empty()
    last = messages[-1]
    if last.role == Role.ASSISTANT:
        if isinstance(last.content, TextContent):
            assert last.content.text == last.content.text.rstrip()
        else:
            for block in last.content.blocks:
                if isinstance(block, TextBlock):
                    assert block.text == block.text.rstrip()


class TestNormalizeMerging:
    """Tests for merging consecutive same-role messages."""

    def test_text_plus_text_joined_with_newline(self):
        """Two user texts merge into one, separated by a newline."""
        result = normalize([Message.user("a"), Message.user("b")])

        assert result == [Message.user("a\nb")]

    def test_blocks_plus_blocks_filters_empty_blocks(self):
        """Empty blocks are dropped from both sides when merging block lists."""
        first = Message.user([TextBlock("one"), TextBlock("  ")])
        second = Message.user([TextBlock(""), TextBlock("two")])

        result = normalize([first, second])

        assert result == [Message.user([TextBlock("one"), TextBlock("two")])]

    def test_blocks_plus_text_appends_text_block(self):
        """Text following blocks becomes a trailing text block."""
        tool_result = ToolResultBlock(tool_use_id="toolu_01", content="42")
        result = normalize([Message.user([tool_result]), Message.user("thanks")])

        assert result == [Message.user([tool_result, TextBlock("thanks")])]

    def test_text_plus_blocks_wraps_text(self):
        """Text followed by blocks is wrapped as the first text block."""
        image = ImageBlock(MediaSource(type="base64", media_type="image/png", data="iVBOR"))

        result = normalize([Message.user("look"), Message.user([image])])

        assert result == [Message.user([TextBlock("look"), image])]

    def test_three_in_a_row(self):
        """Runs longer than two collapse into a single message."""
        result = normalize([Message.user("a"), Message.user("b"), Message.user("c")])

        assert result == [Message.user("a\nb\nc")]

    def test_merge_across_dropped_empty_message(self):
        """An empty message between two same-role messages does not separate them."""
        result = normalize([Message.user("a"), Message.assistant("   "), Message.user("b")])

        assert result == [Message.user("a\nb")]

    def test_alternating_messages_untouched(self):
        """Already-alternating conversations are returned as-is."""
        messages = [Message.user("q"), Message.assistant("a"), Message.user("q2")]

        assert normalize(messages) == messages


class TestNormalizeBoundaries:
    """Tests for the leading-role and trailing-whitespace fixups."""

    def test_leading_assistant_gets_placeholder_user(self):
        """A conversation starting with the assistant gets a synthetic user turn."""
        result = normalize([Message.assistant("hi")])

        assert result == [Message.user(CONVERSATION_START_TEXT), Message.assistant("hi")]
        assert CONVERSATION_START_TEXT == "Starting the conversation…"

    def test_empty_leading_user_does_not_hide_assistant(self):
        """The placeholder is added when the first surviving message is the assistant's."""
        result = normalize([Message.user(""), Message.assistant("hi")])

        assert result[0] == Message.user(CONVERSATION_START_TEXT)
        assert_conversation_invariants(result)

    def test_empty_leading_assistant_does_not_add_placeholder(self):
        """An empty leading assistant message is dropped without adding a placeholder."""
        result = normalize([Message.assistant(""), Message.user("hello")])

        assert result == [Message.user("hello")]

    def test_trailing_assistant_text_trimmed(self):
        """Trailing whitespace is trimmed from a final assistant prefill."""
        result = normalize([Message.user("q"), Message.assistant("hi   ")])

        assert result[-1] == Message.assistant("hi")

    def test_trailing_assistant_blocks_trimmed(self):
        """Every text block of a final assistant message is trimmed."""
        tool_use = ToolUseBlock(id="toolu_01", name="search", input={"q": "x"})
        last = Message.assistant([TextBlock("one \n"), tool_use, TextBlock("two\t")])

        result = normalize([Message.user("q"), last])

        assert result[-1].content == BlocksContent((TextBlock("one"), tool_use, TextBlock("two")))

    def test_trailing_user_not_trimmed(self):
        """Only a final assistant message is trimmed."""
        result = normalize([Message.user("q  ")])

        assert result == [Message.user("q  ")]

    def test_leading_whitespace_kept(self):
        """Only trailing whitespace is removed."""
        result = normalize([Message.user("q"), Message.assistant("  hi ")])

        assert result[-1] == Message.assistant("  hi")


class TestNormalizeEdgeCases:
    """Tests for degenerate inputs."""

    def test_all_empty_input_yields_empty_list(self):
        """Blank messages are all dropped and the result is empty, not an error."""
        assert normalize([Message.user(""), Message.user("  ")]) == []

    def test_no_messages(self):
        """An empty input is an empty output."""
        assert normalize([]) == []

    def test_empty_block_list_dropped(self):
        """A message with an empty block list counts as empty."""
        assert normalize([Message.user([])]) == []

    def test_only_assistant_messages(self):
        """Several assistant messages merge behind one placeholder."""
        result = normalize([Message.assistant("a"), Message.assistant("b ")])

        assert result == [Message.user(CONVERSATION_START_TEXT), Message.assistant("a\nb")]

    def test_input_not_mutated(self):
        """The caller's list is left unchanged."""
        messages = [Message.user("a"), Message.user("b")]

        normalize(messages)

        assert messages == [Message.user("a"), Message.user("b")]


class TestNormalizeProperties:
    """Property checks over a set of awkward conversations."""

    CONVERSATIONS = [
        [Message.assistant("x"), Message.assistant("y"), Message.user("z"), Message.user("w ")],
        [Message.user("  "), Message.assistant([TextBlock("a "), TextBlock(" ")]), Message.assistant("b  ")],
        [
            Message.user([ToolResultBlock("toolu_1", "ok")]),
            Message.user("and"),
            Message.assistant([ToolUseBlock("toolu_2", "f", {})]),
            Message.assistant("done \n"),
        ],
        [Message.user("only")],
    ]

    def test_invariants_hold(self):
        """Output always satisfies the conversation invariants."""
        for conversation in self.CONVERSATIONS:
            assert_conversation_invariants(normalize(conversation))

    def test_idempotent(self):
        """Normalizing twice is the same as normalizing once."""
        for conversation in self.CONVERSATIONS:
            once = normalize(conversation)
            assert normalize(once) == once
