"""Utilities for managing Kubernetes conditions and the DummySite status."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

from ..constants import COND_READY, STATE_READY


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    now = datetime.now(timezone.utc).isoformat()

    # Find existing condition
    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    return update_condition(
        conditions,
        COND_READY,
        "True" if status else "False",
        reason,
        message,
        observed_generation,
    )


def build_site_status(
    previous: dict[str, Any],
    state: str,
    endpoint: str,
    reason: str,
    message: str,
    observed_generation: int,
) -> dict[str, Any]:
    """Build the full status document for a DummySite.

    The previous status is only consulted for the Ready condition's
    ``lastTransitionTime``; every other field is overwritten.

    Args:
        previous: Status currently stored on the object
        state: One of Pending, Ready or Error
        endpoint: In-cluster URL, empty unless the state is Ready
        reason: Machine-readable reason for the state
        message: Human-readable message
        observed_generation: Generation of the object being reconciled

    Returns:
        Status document to write to the status subresource
    """
    conditions = copy.deepcopy(previous.get("conditions") or [])
    conditions = set_ready_condition(
        conditions,
        state == STATE_READY,
        reason,
        message,
        observed_generation,
    )
    return {
        "state": state,
        "endpoint": endpoint if state == STATE_READY else "",
        "message": message,
        "observedGeneration": observed_generation,
        "conditions": conditions,
    }
