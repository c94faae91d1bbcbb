"""
Error Classification

Error types surfaced by the vote, preference, score and trending paths.
Mutation failures propagate to the caller; read paths catch these and fall
back to safe defaults.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of errors for propagation decisions."""

    VALIDATION = "validation"          # Bad vote value, missing ids
    AUTHENTICATION = "authentication"  # Mutation without identity
    STORAGE = "storage"                # Persistence failure or timeout
    UPSTREAM = "upstream"              # Platform fetch failure


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory
    status_code: int = 500
    details: Dict[str, Any] = field(default_factory=dict)


class FlareError(Exception):
    """Base class for all engine errors."""

    category: ErrorCategory = ErrorCategory.STORAGE
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = ErrorContext(
            category=self.category,
            status_code=self.status_code,
            details=details or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to an API error body."""
        result: Dict[str, Any] = {
            "error": self.message,
            "category": self.category.value,
        }
        if self.context.details:
            result["details"] = self.context.details
        return result


class InvalidArgument(FlareError):
    """A vote value or identifier failed validation."""

    category = ErrorCategory.VALIDATION
    status_code = 400


class Unauthenticated(FlareError):
    """A mutation was attempted without a user identity."""

    category = ErrorCategory.AUTHENTICATION
    status_code = 401

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class StorageUnavailable(FlareError):
    """The storage collaborator failed or timed out."""

    category = ErrorCategory.STORAGE
    status_code = 503


class UpstreamUnavailable(FlareError):
    """A platform fetch failed or timed out."""

    category = ErrorCategory.UPSTREAM
    status_code = 502

    def __init__(self, message: str, platform: Optional[str] = None):
        super().__init__(message, {"platform": platform} if platform else None)
        self.platform = platform


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "FlareError",
    "InvalidArgument",
    "Unauthenticated",
    "StorageUnavailable",
    "UpstreamUnavailable",
]
