"""Utilities for emitting Kubernetes events on DummySite objects."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from kubernetes.client.exceptions import ApiException

from ..constants import (
    API_GROUP_VERSION,
    CONTROLLER_NAME,
    EVENT_REASON_RESOURCE_CREATED,
    EVENT_REASON_SITE_READY,
    KIND_DUMMY_SITE,
    REASON_APPLY_FAILED,
    REASON_FETCH_FAILED,
    REASON_INVALID_SPEC,
)
from ..models import SiteDescriptor
from .errors import sanitize_error_message

logger = logging.getLogger(__name__)


class EventRecorder:
    """Post core/v1 Events that point at a DummySite.

    Events are best-effort: a failure to post one is logged and never
    interrupts a reconcile pass.
    """

    def __init__(self, core_api: Any, component: str = CONTROLLER_NAME):
        self.core_api = core_api
        self.component = component

    def emit(
        self,
        site: SiteDescriptor,
        reason: str,
        message: str,
        type_: str = "Normal",
    ) -> None:
        """Emit a Kubernetes event.

        Args:
            site: The DummySite the event is about
            reason: Event reason
            message: Event message
            type_: Event type (Normal or Warning)
        """
        now = datetime.now(timezone.utc).isoformat()
        body = {
            "metadata": {
                "generateName": f"{site.name}-",
                "namespace": site.namespace,
            },
            "involvedObject": {
                "apiVersion": API_GROUP_VERSION,
                "kind": KIND_DUMMY_SITE,
                "name": site.name,
                "namespace": site.namespace,
                "uid": site.uid,
                "resourceVersion": site.resource_version,
            },
            "reason": reason,
            "message": sanitize_error_message(message),
            "type": type_,
            "source": {"component": self.component},
            "reportingComponent": self.component,
            "firstTimestamp": now,
            "lastTimestamp": now,
            "count": 1,
        }
        try:
            self.core_api.create_namespaced_event(namespace=site.namespace, body=body)
        except ApiException as e:
            logger.warning(
                "Failed to post %s event for %s: %s", reason, site.key, sanitize_error_message(str(e))
            )

    def validate_failed(self, site: SiteDescriptor, message: str) -> None:
        """Emit spec validation failed event."""
        self.emit(site, REASON_INVALID_SPEC, message, type_="Warning")

    def fetch_failed(self, site: SiteDescriptor, message: str) -> None:
        """Emit content fetch failed event."""
        self.emit(site, REASON_FETCH_FAILED, message, type_="Warning")

    def apply_failed(self, site: SiteDescriptor, message: str) -> None:
        """Emit dependent resource write failed event."""
        self.emit(site, REASON_APPLY_FAILED, message, type_="Warning")

    def resource_created(self, site: SiteDescriptor, kind: str, name: str) -> None:
        """Emit dependent resource created event."""
        self.emit(site, EVENT_REASON_RESOURCE_CREATED, f"{kind} {name} created")

    def site_ready(self, site: SiteDescriptor, endpoint: str) -> None:
        """Emit site ready event."""
        self.emit(site, EVENT_REASON_SITE_READY, f"Site is serving at {endpoint}")
