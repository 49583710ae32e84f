"""Provider-agnostic content model and pure conversation transforms."""

from .content import (
    BASE_BLOCKS,
    REQUEST_ONLY_BLOCKS,
    RESPONSE_ONLY_BLOCKS,
    BlocksContent,
    Content,
    ContentBlock,
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
from .normalize import CONVERSATION_START_TEXT, normalize
from .stop_reason import FinishReason, StopReason, to_finish_reason, to_stop_reason
from .types import (
    InternalRequest,
    StreamChunk,
    TokenUsage,
    ToolCall,
    ToolDefinition,
    UnaryResponse,
)

__all__ = [
    # Content
    "BASE_BLOCKS",
    "REQUEST_ONLY_BLOCKS",
    "RESPONSE_ONLY_BLOCKS",
    "BlocksContent",
    "Content",
    "ContentBlock",
    "DocumentBlock",
    "ImageBlock",
    "MediaSource",
    "Message",
    "RedactedThinkingBlock",
    "Role",
    "TextBlock",
    "TextContent",
    "ThinkingBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "allowed_in_request",
    "allowed_in_response",
    # Normalizer
    "CONVERSATION_START_TEXT",
    "normalize",
    # Stop reasons
    "FinishReason",
    "StopReason",
    "to_finish_reason",
    "to_stop_reason",
    # Types
    "InternalRequest",
    "StreamChunk",
    "TokenUsage",
    "ToolCall",
    "ToolDefinition",
    "UnaryResponse",
]
