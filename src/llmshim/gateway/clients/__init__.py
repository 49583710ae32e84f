"""Upstream API clients."""

from .llm_client import LLMClient, LLMClientConfig

__all__ = ["LLMClient", "LLMClientConfig"]
