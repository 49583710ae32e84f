"""Client for the Anthropic Messages API.

Uses aiohttp.ClientSession. Streaming responses are decoded line by line and
fed through a :class:`ClaudeStreamTranslator`, so callers receive normalized
chunks and completed tool calls as they arrive.

No retries and no circuit breaking: a failed request raises.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import aiohttp

from llmshim.core.transforms.types import InternalRequest, UnaryResponse
from llmshim.gateway.errors import vendor_error_from_status
from llmshim.gateway.transforms.anthropic import AnthropicTransformer
from llmshim.gateway.transforms.sse import iter_sse_payloads
from llmshim.gateway.transforms.translator import ClaudeStreamTranslator, Step, TranslatorConfig

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
DEFAULT_MODEL = "claude-sonnet-4-5"
ANTHROPIC_VERSION = "2023-06-01"


def _find_project_root() -> Path | None:
    """Walk up from the working directory to find the project root (contains pyproject.toml)."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


@dataclass
class LLMClientConfig:
    """Configuration for LLM client."""

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    anthropic_version: str = ANTHROPIC_VERSION

    # Timeouts (seconds)
    connect_timeout: float = 10.0
    read_timeout: float = 300.0

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> LLMClientConfig:
        """Build a config from the environment.

        Loads ``env_file`` (or ``.env.local`` at the project root, if present)
        first. Reads ANTHROPIC_API_KEY, ANTHROPIC_BASE_URL and LLMSHIM_MODEL.

        Raises:
            ValueError: If no API key is configured.
        """
        from dotenv import load_dotenv

        if env_file is None:
            project_root = _find_project_root()
            if project_root and (project_root / ".env.local").exists():
                env_file = project_root / ".env.local"
        if env_file is not None:
            load_dotenv(env_file)

        api_key = os.getenv("ANTHROPIC_API_KEY", "")
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY is not set")
        return cls(
            api_key=api_key,
            base_url=os.getenv("ANTHROPIC_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            model=os.getenv("LLMSHIM_MODEL", DEFAULT_MODEL),
        )


@dataclass
class LLMClient:
    """HTTP client for the Messages API.

    Example:
        async with LLMClient(LLMClientConfig.from_env()) as client:
            translator = ClaudeStreamTranslator()
            async for chunk, tool_call in client.stream(request, translator):
                ...
            response = translator.finalize()
    """

    config: LLMClientConfig
    _session: aiohttp.ClientSession | None = None
    _transformer: AnthropicTransformer = field(default_factory=AnthropicTransformer)

    async def connect(self) -> None:
        """Open the HTTP session."""
        timeout = aiohttp.ClientTimeout(
            connect=self.config.connect_timeout,
            total=self.config.read_timeout,
        )
        self._session = aiohttp.ClientSession(
            headers={
                "x-api-key": self.config.api_key,
                "anthropic-version": self.config.anthropic_version,
                "content-type": "application/json",
            },
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> LLMClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def url(self) -> str:
        return f"{self.config.base_url}/messages"

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("Client not connected. Call connect() first.")
        return self._session

    async def send(self, request: InternalRequest) -> UnaryResponse:
        """Non-streaming request.

        Raises:
            VendorError: If the API returns an error status.
            DecodeError: If the response body is not a Messages response.
        """
        session = self._require_session()
        body = self._transformer.to_upstream(request, model=request.model or self.config.model)
        body.pop("stream", None)

        start_time = time.time()
        async with session.post(self.url, json=body) as response:
            text = await response.text()
            if response.status != 200:
                logger.error("Upstream error %d: %s", response.status, text[:500])
                raise vendor_error_from_status(response.status, text)

        logger.debug("Request completed in %.2fs", time.time() - start_time)
        return self._transformer.from_upstream(text)

    async def stream(
        self,
        request: InternalRequest,
        translator: ClaudeStreamTranslator | None = None,
    ) -> AsyncIterator[Step]:
        """Streaming request.

        Yields every step that carries a chunk or a completed tool call, and
        stops once the message is complete. Pass your own ``translator`` to
        call ``finalize()`` on it afterwards.

        Raises:
            VendorError: On an error status or an in-stream error event.
            DecodeError: If an event payload is malformed.
        """
        session = self._require_session()
        model = request.model or self.config.model
        body = self._transformer.to_upstream(request, model=model)
        body["stream"] = True
        if translator is None:
            translator = ClaudeStreamTranslator(
                TranslatorConfig(model=model), prompt=request.messages, tools=request.tools
            )

        async with session.post(self.url, json=body) as response:
            if response.status != 200:
                error_body = await response.text()
                logger.error("Upstream error %d: %s", response.status, error_body[:500])
                raise vendor_error_from_status(response.status, error_body)

            logger.debug("Starting to receive SSE stream")
            async for payload in iter_sse_payloads(response.content):
                step = translator.consume_payload(payload)
                if step.chunk is not None or step.tool_call is not None:
                    yield step
                if translator.is_complete:
                    break
