"""Dialect transformers and stream translators.

Converts between the Anthropic and OpenAI wire formats and the
provider-agnostic internal representation in ``llmshim.core.transforms``.
"""

from .anthropic import AnthropicTransformer
from .openai import OpenAIStreamTranslator, OpenAITransformer
from .schema import MessagesRequest, decode_event, decode_message, validate_request
from .sse import SSE_DONE, iter_sse_payloads, parse_sse_line
from .tools import ToolRegistry, input_schema_for
from .translator import ClaudeStreamTranslator, Step, StreamTranslator, TranslatorConfig

__all__ = [
    # Transformers
    "AnthropicTransformer",
    "OpenAITransformer",
    # Translators
    "ClaudeStreamTranslator",
    "OpenAIStreamTranslator",
    "Step",
    "StreamTranslator",
    "TranslatorConfig",
    # Schema
    "MessagesRequest",
    "decode_event",
    "decode_message",
    "validate_request",
    # SSE
    "SSE_DONE",
    "iter_sse_payloads",
    "parse_sse_line",
    # Tools
    "ToolRegistry",
    "input_schema_for",
]
