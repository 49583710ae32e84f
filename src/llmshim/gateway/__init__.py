"""Gateway layer: vendor wire formats, stream translation and the upstream client.

Components:
- Transforms: wire schemas, dialect transformers and stream translators
- Clients: HTTP client for the Anthropic Messages API

Usage:
    from llmshim.gateway.transforms import OpenAITransformer, AnthropicTransformer

    request = OpenAITransformer().to_internal(openai_body)
    anthropic_body = AnthropicTransformer().to_upstream(request, model="claude-sonnet-4-5")
"""

from llmshim.gateway.errors import ERROR_TYPE_MAP, TranslationError, VendorError

__all__ = [
    "ERROR_TYPE_MAP",
    "TranslationError",
    "VendorError",
]
