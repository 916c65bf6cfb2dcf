"""Error classes and helpers for the Rules MCP Server.

Source-level errors (`SourceUnavailableError`, `DocumentFetchError`) are
absorbed by the synchronizer and only logged. Caller-level errors
(`NotFoundError`, `BadRequestError`) propagate to the MCP layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, TypedDict


class ErrorPayload(TypedDict, total=False):
    code: str
    message: str
    details: Dict[str, Any]


@dataclass
class AppError(Exception):
    """Base application error with a code and optional details."""

    code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> ErrorPayload:
        payload: ErrorPayload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class BadRequestError(AppError):
    """Raised when a request is invalid or missing required parameters."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("BAD_REQUEST", message, details)


class NotFoundError(AppError):
    """Raised when a requested rule is absent or its URI cannot be parsed."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("NOT_FOUND", message, details)


class SourceUnavailableError(AppError):
    """Raised when the rule source cannot be enumerated at all."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("SOURCE_UNAVAILABLE", message, details)


class DocumentFetchError(AppError):
    """Raised when a single rule document cannot be read or downloaded."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("FETCH_FAILED", message, details)


def to_error_payload(error: Exception) -> ErrorPayload:
    """Convert an exception into a structured error payload.

    Args:
        error: The exception to convert.

    Returns:
        A dictionary with `code`, `message` and optional `details`.

    Examples:
        >>> try:
        ...     raise NotFoundError("Rule not found", {"name": "style.md"})
        ... except Exception as e:
        ...     payload = to_error_payload(e)
        ...     assert payload["code"] == "NOT_FOUND"
    """

    if isinstance(error, AppError):
        return error.to_payload()
    # Fallback: wrap generic exceptions
    return {"code": "INTERNAL", "message": str(error)}
