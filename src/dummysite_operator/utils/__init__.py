"""Utility functions for the DummySite Operator."""

from .conditions import build_site_status, set_ready_condition, update_condition
from .context import get_context_dict, get_correlation_id, new_correlation_id, with_correlation_id
from .errors import (
    DependentApplyError,
    FetchError,
    OperatorError,
    SpecValidationError,
    sanitize_dict,
    sanitize_error_message,
    sanitize_exception,
)

__all__ = [
    "update_condition",
    "set_ready_condition",
    "build_site_status",
    "new_correlation_id",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
    "OperatorError",
    "SpecValidationError",
    "FetchError",
    "DependentApplyError",
    "sanitize_error_message",
    "sanitize_exception",
    "sanitize_dict",
]
