"""Reconciliation of a single DummySite against the API server."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping

import urllib3
from kubernetes.client.exceptions import ApiException

from .builders.site import build_dependent_resources
from .constants import (
    CONTROLLER_NAME,
    DEFAULT_INGRESS_DOMAIN,
    KIND_DUMMY_SITE,
    REASON_APPLY_FAILED,
    REASON_FETCH_FAILED,
    REASON_INVALID_SPEC,
    REASON_READY,
    STATE_ERROR,
    STATE_READY,
)
from .logging import log_resource_event
from .models import SiteDescriptor, SiteKey, site_endpoint
from .services.kube import ACTION_CREATED, DependentResourceClient, SiteStatusWriter
from .utils.conditions import build_site_status
from .utils.context import new_correlation_id, with_correlation_id
from .utils.errors import (
    DependentApplyError,
    FetchError,
    SpecValidationError,
    sanitize_exception,
)
from .utils.events import EventRecorder

# Phases of a pass, reported in logs and in ReconcileResult
PHASE_FETCHING = "Fetching"
PHASE_SYNTHESIZING = "Synthesizing"
PHASE_READY = "Ready"
PHASE_ERROR = "Error"
PHASE_SKIPPED = "Skipped"


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconcile pass."""

    key: SiteKey
    phase: str
    message: str = ""
    step: str = ""

    @property
    def succeeded(self) -> bool:
        return self.phase in (PHASE_READY, PHASE_SKIPPED)


class SiteReconciler:
    """Drive the dependents and the status of a DummySite to the declared intent.

    Every pass starts from scratch: read the object from the cache, fetch the
    page, build the four dependents, write them in order and report the
    outcome in the status subresource. Nothing is carried between passes, so
    re-running a pass on unchanged input converges to the same state.
    """

    def __init__(
        self,
        cache: Any,
        fetcher: Any,
        dependents: Mapping[str, DependentResourceClient],
        status_writer: SiteStatusWriter,
        events: EventRecorder | None = None,
        ingress_domain: str = DEFAULT_INGRESS_DOMAIN,
    ):
        self.cache = cache
        self.fetcher = fetcher
        self.dependents = dependents
        self.status_writer = status_writer
        self.events = events
        self.ingress_domain = ingress_domain
        self.logger = logging.getLogger(__name__)

    def reconcile(self, key: SiteKey) -> ReconcileResult:
        """Run one reconcile pass for ``key``.

        Never raises for per-object failures; they are logged, reported in
        the status where applicable and returned as an ``Error`` result.
        """
        with with_correlation_id(new_correlation_id()):
            start_time = time.time()
            result = self._reconcile(key)
            self._log(
                key,
                "",
                f"Reconcile finished: {result.phase}",
                event="reconcile",
                reason="ReconcileFinished",
                level=logging.INFO if result.succeeded else logging.WARNING,
                phase=result.phase,
                step=result.step,
                duration_seconds=round(time.time() - start_time, 3),
            )
            return result

    def _reconcile(self, key: SiteKey) -> ReconcileResult:
        try:
            site = self.cache.get(key)
        except SpecValidationError as e:
            return self._handle_invalid_spec(key, e)

        if site is None:
            # Dependents are garbage-collected through their owner references.
            self._log(key, "", "DummySite no longer exists, nothing to do", reason="Deleted")
            return ReconcileResult(key, PHASE_SKIPPED, "deleted")

        self._log(key, site.uid, f"Fetching content from {site.source_url}", reason=PHASE_FETCHING)
        try:
            content = self.fetcher.fetch(site.source_url)
        except FetchError as e:
            message = sanitize_exception(e)
            self._log(
                key,
                site.uid,
                message,
                event="error",
                reason=REASON_FETCH_FAILED,
                level=logging.ERROR,
                step=PHASE_FETCHING,
            )
            if self.events:
                self.events.fetch_failed(site, message)
            self._write_status(site, STATE_ERROR, "", REASON_FETCH_FAILED, message)
            return ReconcileResult(key, PHASE_ERROR, message, step=PHASE_FETCHING)

        self._log(
            key,
            site.uid,
            "Synthesizing dependent resources",
            reason=PHASE_SYNTHESIZING,
            content_bytes=len(content),
        )
        try:
            self._apply_dependents(site, content)
        except DependentApplyError as e:
            message = str(e)
            step = f"apply {e.kind}"
            self._log(
                key,
                site.uid,
                message,
                event="error",
                reason=REASON_APPLY_FAILED,
                level=logging.ERROR,
                step=step,
                status_code=e.status,
            )
            if self.events:
                self.events.apply_failed(site, message)
            return ReconcileResult(key, PHASE_ERROR, message, step=step)

        endpoint = site_endpoint(site.name, site.namespace)
        was_ready = site.state == STATE_READY and site.status.get("endpoint") == endpoint
        self._write_status(site, STATE_READY, endpoint, REASON_READY, f"Site is serving at {endpoint}")
        if self.events and not was_ready:
            self.events.site_ready(site, endpoint)
        return ReconcileResult(key, PHASE_READY, endpoint)

    def _apply_dependents(self, site: SiteDescriptor, content: bytes) -> None:
        """Write the dependents in order, stopping at the first failure.

        Resources written before the failure are left in place; the next
        pass overwrites them again.

        Raises:
            DependentApplyError: If reading or writing a dependent fails,
                including transport errors that never reached the API server
        """
        for resource in build_dependent_resources(site, content, self.ingress_domain):
            client = self.dependents[resource.kind]
            try:
                action = client.apply(resource.body)
            except (ApiException, urllib3.exceptions.HTTPError) as e:
                raise DependentApplyError(resource.kind, resource.name, e) from e

            self._log(
                site.key,
                site.uid,
                f"{resource.kind} {resource.name} {action}",
                reason=f"{resource.kind}Applied",
                action=action,
            )
            if action == ACTION_CREATED and self.events:
                self.events.resource_created(site, resource.kind, resource.name)

    def _handle_invalid_spec(self, key: SiteKey, error: SpecValidationError) -> ReconcileResult:
        message = sanitize_exception(error)
        site = error.site
        uid = site.uid if site is not None else ""
        self._log(
            key, uid, message, event="error", reason=REASON_INVALID_SPEC, level=logging.ERROR, step="validate"
        )
        if site is not None:
            if self.events:
                self.events.validate_failed(site, message)
            self._write_status(site, STATE_ERROR, "", REASON_INVALID_SPEC, message)
        return ReconcileResult(key, PHASE_ERROR, message, step="validate")

    def _write_status(
        self,
        site: SiteDescriptor,
        state: str,
        endpoint: str,
        reason: str,
        message: str,
    ) -> None:
        status = build_site_status(site.status, state, endpoint, reason, message, site.generation)
        try:
            self.status_writer.write(site.key, status)
        except (ApiException, urllib3.exceptions.HTTPError) as e:
            # Not fatal: the next pass writes the status again.
            self._log(
                site.key,
                site.uid,
                f"Failed to update status: {sanitize_exception(e)}",
                event="error",
                reason="StatusUpdateFailed",
                level=logging.ERROR,
                step="status",
                status_code=getattr(e, "status", None),
            )

    def _log(
        self,
        key: SiteKey,
        uid: str,
        message: str,
        event: str = "reconcile",
        reason: str = "Info",
        level: int = logging.INFO,
        **kwargs: Any,
    ) -> None:
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=KIND_DUMMY_SITE,
            resource_name=key.name,
            namespace=key.namespace,
            uid=uid,
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )
