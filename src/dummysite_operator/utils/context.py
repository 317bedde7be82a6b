"""Correlation ID propagation for reconcile passes."""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

# Context variable for storing correlation ID
correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def new_correlation_id() -> str:
    """Return a short random identifier for one reconcile pass."""
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> str | None:
    """Get the correlation ID from the current context.
    
    Returns:
        Correlation ID if set, None otherwise
    """
    return correlation_id.get()


@contextmanager
def with_correlation_id(corr_id: str) -> Iterator[str]:
    """Context manager to set a correlation ID for the duration of a block.
    
    Args:
        corr_id: Correlation ID to use
        
    Yields:
        The correlation ID
    """
    token = correlation_id.set(corr_id)
    try:
        yield corr_id
    finally:
        correlation_id.reset(token)


def get_context_dict(additional: dict[str, Any] | None = None) -> dict[str, Any]:
    """Get a dictionary of context values.
    
    Args:
        additional: Additional key-value pairs to include
        
    Returns:
        Dictionary with context values including correlation_id
    """
    ctx = {}
    
    corr_id = get_correlation_id()
    if corr_id:
        ctx["correlation_id"] = corr_id
    
    if additional:
        ctx.update(additional)
    
    return ctx
