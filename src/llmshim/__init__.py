"""llmshim - conversation normalization and stream translation for LLM APIs.

Layers:
    core/       Content model, conversation normalizer, stop-reason mapping
    gateway/    Wire schemas, dialect transformers, stream translators, client

Quick Start (normalize a conversation):
    >>> from llmshim import Message, normalize
    >>> normalize([Message.user("a"), Message.user("b")])
    [Message(role=<Role.USER: 'user'>, content=TextContent(text='a\\nb'))]

Quick Start (translate a stream):
    >>> from llmshim import ClaudeStreamTranslator
    >>> translator = ClaudeStreamTranslator()
    >>> for payload in events:
    ...     chunk, tool_call = translator.consume_payload(payload)
    >>> response = translator.finalize()
"""

from llmshim.__version__ import __version__
from llmshim.core.transforms import (
    BlocksContent,
    ContentBlock,
    FinishReason,
    Message,
    Role,
    StopReason,
    StreamChunk,
    TextContent,
    TokenUsage,
    ToolCall,
    UnaryResponse,
    normalize,
    to_finish_reason,
)
from llmshim.gateway.errors import (
    DecodeError,
    ToolArgumentParseError,
    TranslationError,
    TranslatorClosedError,
    VendorError,
    VendorErrorKind,
)
from llmshim.gateway.transforms import (
    ClaudeStreamTranslator,
    OpenAIStreamTranslator,
    Step,
    ToolRegistry,
    TranslatorConfig,
)

__all__ = [
    "__version__",
    # Content
    "BlocksContent",
    "ContentBlock",
    "Message",
    "Role",
    "TextContent",
    "normalize",
    # Results
    "FinishReason",
    "StopReason",
    "StreamChunk",
    "TokenUsage",
    "ToolCall",
    "UnaryResponse",
    "to_finish_reason",
    # Translation
    "ClaudeStreamTranslator",
    "OpenAIStreamTranslator",
    "Step",
    "ToolRegistry",
    "TranslatorConfig",
    # Errors
    "DecodeError",
    "ToolArgumentParseError",
    "TranslationError",
    "TranslatorClosedError",
    "VendorError",
    "VendorErrorKind",
]
