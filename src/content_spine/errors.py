"""
Structured error types for the content indexing pipeline.

Every failure raised by content-spine extends ``ContentSpineError`` and carries:

- **category:** what kind of failure (network, source, upload, config, ...)
- **retryable:** whether the same request may succeed when repeated
- **context:** ``ErrorContext`` with the URL, HTTP status, content type and locale
- **cause:** the underlying exception, chained as ``__cause__``

Error taxonomy::

    ContentSpineError
    ├── ConfigError ─────────── MissingConfigError
    ├── ValidationError ─────── UnsupportedContentTypeError
    ├── SourceError
    ├── CatalogRequestError ─── CatalogUploadError
    ├── TransientError ──────── RateLimitError
    └── TaskTimeoutError

Only ``TransientError`` is retryable by default. The bulk catalog replace never
retries; the per-item patch client retries transient errors only.

Usage:
    from content_spine.errors import CatalogRequestError, TransientError

    if response.status_code == 429 or response.status_code >= 500:
        raise TransientError("catalog busy", retryable=True)
    raise CatalogRequestError("patch rejected", status=400, body=payload)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for log routing and retry decisions."""

    NETWORK = "NETWORK"
    SOURCE = "SOURCE"
    UPLOAD = "UPLOAD"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    ORCHESTRATION = "ORCHESTRATION"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error."""

    content_type: str | None = None
    locale: str | None = None
    section: str | None = None
    url: str | None = None
    http_status: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["content_type", "locale", "section", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ContentSpineError(Exception):
    """
    Base exception for all content-spine errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can be
    overridden per instance.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ContentSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SourceError("query failed").with_context(
                content_type="techTip",
                url="https://graphql.contentful.com/...",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ContentSpineError):
    """Configuration error. Never retryable."""

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """A required credential or parameter is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ContentSpineError):
    """Invalid input to a pipeline stage. Never retryable."""

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class UnsupportedContentTypeError(ValidationError):
    """Content type id did not match any registered indexer (strict mode)."""

    def __init__(self, content_type_id: str, supported: list[str]):
        self.content_type_id = content_type_id
        self.supported = supported
        super().__init__(
            f"Unsupported content type '{content_type_id}'. Supported: {', '.join(supported)}",
            field="contentTypeId",
            value=content_type_id,
        )


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(ContentSpineError):
    """The content source rejected or failed a query."""

    default_category = ErrorCategory.SOURCE
    default_retryable = False


# =============================================================================
# CATALOG ERRORS
# =============================================================================


class CatalogRequestError(ContentSpineError):
    """The catalog service answered with a non-success status."""

    default_category = ErrorCategory.UPLOAD
    default_retryable = False

    def __init__(self, message: str, *, status: int | None = None, body: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status = status
        self.body = body
        if status is not None:
            self.context.http_status = status


class CatalogUploadError(CatalogRequestError):
    """Full-catalog replace failed. Terminal for the run."""


class TaskTimeoutError(ContentSpineError):
    """A catalog task did not reach a terminal state before the deadline."""

    default_category = ErrorCategory.UPLOAD
    default_retryable = False

    def __init__(self, task_id: str, timeout: float, last_status: str | None = None):
        self.task_id = task_id
        self.timeout = timeout
        self.last_status = last_status
        super().__init__(
            f"Task {task_id} still '{last_status}' after {timeout:g}s"
        )


# =============================================================================
# TRANSIENT ERRORS (Retryable)
# =============================================================================


class TransientError(ContentSpineError):
    """Temporary failure (timeout, connection reset, 5xx) that may succeed on retry."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True

    def __init__(self, message: str, *, status: int | None = None, body: Any = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status = status
        self.body = body
        if status is not None:
            self.context.http_status = status


class RateLimitError(TransientError):
    """HTTP 429 from the catalog service."""

    def __init__(self, message: str = "Rate limit exceeded", **kwargs: Any):
        kwargs.setdefault("status", 429)
        super().__init__(message, **kwargs)


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, ContentSpineError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ContentSpineError",
    "ConfigError",
    "MissingConfigError",
    "ValidationError",
    "UnsupportedContentTypeError",
    "SourceError",
    "CatalogRequestError",
    "CatalogUploadError",
    "TaskTimeoutError",
    "TransientError",
    "RateLimitError",
    "is_retryable",
]
