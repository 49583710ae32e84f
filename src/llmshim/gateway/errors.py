"""Error taxonomy for translation and upstream failures.

Vendor error payloads (in-stream ``error`` events or HTTP error bodies) are
mapped onto a small set of internal kinds so callers can branch without
knowing which dialect produced them.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class VendorErrorKind(str, Enum):
    OVERLOADED = "overloaded"
    INTERNAL = "internal"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"


# Error type mapping from upstream status to Anthropic error type
ERROR_TYPE_MAP = {
    400: "invalid_request_error",
    401: "authentication_error",
    403: "permission_error",
    404: "not_found_error",
    413: "request_too_large",
    429: "rate_limit_error",
    500: "api_error",
    502: "api_error",
    503: "api_error",
    504: "api_error",
    529: "overloaded_error",
}

# Anthropic error types and OpenAI error types/codes
ERROR_KIND_MAP: dict[str, VendorErrorKind] = {
    "overloaded_error": VendorErrorKind.OVERLOADED,
    "api_error": VendorErrorKind.INTERNAL,
    "server_error": VendorErrorKind.INTERNAL,
    "invalid_request_error": VendorErrorKind.BAD_REQUEST,
    "request_too_large": VendorErrorKind.BAD_REQUEST,
    "context_length_exceeded": VendorErrorKind.BAD_REQUEST,
    "authentication_error": VendorErrorKind.UNAUTHORIZED,
    "permission_error": VendorErrorKind.UNAUTHORIZED,
    "invalid_api_key": VendorErrorKind.UNAUTHORIZED,
    "rate_limit_error": VendorErrorKind.RATE_LIMITED,
    "rate_limit_exceeded": VendorErrorKind.RATE_LIMITED,
    "insufficient_quota": VendorErrorKind.RATE_LIMITED,
    "not_found_error": VendorErrorKind.NOT_FOUND,
    "model_not_found": VendorErrorKind.NOT_FOUND,
}


class TranslationError(Exception):
    """Base class for every error raised by llmshim."""


class VendorError(TranslationError):
    """The vendor reported an error, either in-stream or as an HTTP error body."""

    def __init__(
        self,
        kind: VendorErrorKind,
        message: str,
        error_type: str = "",
        payload: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        super().__init__(f"{error_type or kind.value}: {message}")
        self.kind = kind
        self.message = message
        self.error_type = error_type
        self.payload = payload or {}
        self.status_code = status_code

    @classmethod
    def from_payload(cls, payload: dict[str, Any], status_code: int | None = None) -> VendorError:
        """Build from an error body.

        Accepts both ``{"type": "error", "error": {...}}`` and a bare
        ``{"type": ..., "message": ...}`` error object. For OpenAI bodies the
        ``code`` is consulted when ``type`` is unknown.
        """
        error = payload.get("error", payload)
        if not isinstance(error, dict):
            error = {"message": str(error)}

        error_type = str(error.get("type") or "")
        code = str(error.get("code") or "")
        kind = ERROR_KIND_MAP.get(error_type) or ERROR_KIND_MAP.get(code)
        if kind is None and status_code is not None:
            kind = ERROR_KIND_MAP.get(ERROR_TYPE_MAP.get(status_code, ""))
        return cls(
            kind=kind or VendorErrorKind.INTERNAL,
            message=str(error.get("message") or ""),
            error_type=error_type or code,
            payload=payload,
            status_code=status_code,
        )


def vendor_error_from_status(status_code: int, body: str) -> VendorError:
    """Build a VendorError from an HTTP error response.

    Uses the body's error object when it is JSON, else the status code alone.
    """
    try:
        payload = json.loads(body) if body else None
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict):
        return VendorError.from_payload(payload, status_code=status_code)

    error_type = ERROR_TYPE_MAP.get(
        status_code, "api_error" if status_code >= 500 else "invalid_request_error"
    )
    return VendorError(
        kind=ERROR_KIND_MAP[error_type],
        message=body or f"Upstream returned {status_code}",
        error_type=error_type,
        status_code=status_code,
    )


class DecodeError(TranslationError):
    """A payload did not match any known wire shape."""

    def __init__(self, message: str, payload: Any = None, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.payload = payload
        self.errors = errors or []


class ToolArgumentParseError(TranslationError):
    """A tool call's concatenated arguments were not a JSON object."""

    def __init__(self, tool_call_id: str, name: str, raw_arguments: str):
        super().__init__(f"Invalid arguments for tool call {tool_call_id} ({name}): {raw_arguments!r}")
        self.tool_call_id = tool_call_id
        self.name = name
        self.raw_arguments = raw_arguments


class TranslatorClosedError(TranslationError):
    """The translator was already finalized."""


class ToolSchemaError(ValueError):
    """A tool's parameter model does not produce an object schema."""
