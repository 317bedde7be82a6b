"""Operator error types and error message sanitization."""

from __future__ import annotations

import re
from typing import Any


class OperatorError(Exception):
    """Base class for errors raised while reconciling a DummySite."""


class SpecValidationError(OperatorError):
    """The DummySite spec is missing a required field or holds a malformed value.

    Terminal for the object until its spec changes.
    """

    def __init__(self, message: str, site: Any = None):
        super().__init__(message)
        # Identity-only SiteDescriptor, so status and events can still be written
        self.site = site


class FetchError(OperatorError):
    """The remote site content could not be retrieved."""

    def __init__(self, message: str, url: str, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DependentApplyError(OperatorError):
    """Writing one of the dependent resources to the API server failed."""

    def __init__(self, kind: str, name: str, cause: Exception):
        super().__init__(f"Failed to apply {kind} {name}: {sanitize_exception(cause)}")
        self.kind = kind
        self.name = name
        self.cause = cause
        self.status = getattr(cause, "status", None)


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    # user:password@ in URLs
    (r"(https?://)[^/\s:@]+:[^/\s@]+@", r"\1[REDACTED]@"),
    # token-like query parameters
    (
        r"([?&](?:token|access_token|api_key|apikey|key|signature|sig|password)=)[^&\s]+",
        r"\1[REDACTED]",
    ),
    (r"(Authorization[:\s]+)(Bearer|Basic)\s+\S+", r"\1\2 [REDACTED]"),
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "secret",
    "credentials",
    "token",
    "authorization",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.
    
    Args:
        message: Original error message
        
    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message
    for pattern, replacement in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)
    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message.
    
    Args:
        error: Exception object
        
    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.
    
    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)
        
    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    all_sensitive = SENSITIVE_FIELDS | (sensitive_keys or set())
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized
