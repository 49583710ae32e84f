"""Tests for stop-reason / finish-reason mapping."""

import pytest

from llmshim.core.transforms.stop_reason import (
    FINISH_REASON_MAP,
    FinishReason,
    StopReason,
    parse_finish_reason,
    to_finish_reason,
    to_stop_reason,
)


class TestFinishReasonMapping:
    """Tests for the vendor-to-internal table."""

    @pytest.mark.parametrize(
        "stop_reason, finish_reason",
        [
            (StopReason.END_TURN, FinishReason.STOP),
            (StopReason.MAX_TOKENS, FinishReason.LENGTH),
            (StopReason.STOP_SEQUENCE, FinishReason.STOP),
            (StopReason.TOOL_USE, FinishReason.TOOL_CALLS),
            (StopReason.PAUSE_TURN, FinishReason.STOP),
            (StopReason.REFUSAL, FinishReason.CONTENT_FILTER),
        ],
    )
    def test_mapping(self, stop_reason, finish_reason):
        """Each stop reason maps to its finish reason."""
        assert to_finish_reason(stop_reason) == finish_reason

    def test_table_is_total(self):
        """Every stop reason has an entry."""
        assert set(FINISH_REASON_MAP) == set(StopReason)

    def test_values_match_wire(self):
        """Enum values are the strings the vendors send."""
        assert StopReason("end_turn") is StopReason.END_TURN
        assert FinishReason.TOOL_CALLS.value == "tool_calls"


class TestReverseMapping:
    """Tests for re-encoding finish reasons as stop reasons."""

    def test_every_finish_reason_maps_back(self):
        """Every finish reason has an Anthropic stop reason."""
        for finish_reason in FinishReason:
            assert isinstance(to_stop_reason(finish_reason), StopReason)

    def test_tool_calls_round_trip(self):
        """tool_use survives a round trip through the internal vocabulary."""
        assert to_stop_reason(to_finish_reason(StopReason.TOOL_USE)) == StopReason.TOOL_USE

    def test_parse_legacy_function_call(self):
        """The legacy function_call finish reason reads as tool_calls."""
        assert parse_finish_reason("function_call") == FinishReason.TOOL_CALLS
        assert parse_finish_reason("length") == FinishReason.LENGTH

    def test_parse_unknown_raises(self):
        """Unknown finish reasons raise ValueError."""
        with pytest.raises(ValueError):
            parse_finish_reason("eos")
