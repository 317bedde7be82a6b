"""Main entry point for the DummySite Operator.

Run with ``kopf run --standalone --all-namespaces -m dummysite_operator.main``.
kopf owns the list and watch of DummySites, the process lifecycle and signal
handling; the handlers below index, reconcile and resync each object.
"""

from __future__ import annotations

import logging
from typing import Any

import kopf
import urllib3
from kubernetes import client
from kubernetes.client.exceptions import ApiException
from kubernetes.config import ConfigException

from . import logging as structured_logging
from .cache import CacheSync, SiteCache, SiteLocks, index_site
from .config import OperatorConfig
from .constants import API_GROUP, API_GROUP_VERSION, API_VERSION, KIND_DUMMY_SITE, PLURAL_DUMMY_SITES
from .health import start_health_server
from .models import SiteKey
from .reconciler import SiteReconciler
from .services.fetcher import ContentFetcher
from .services.kube import SiteStatusWriter, build_dependent_clients, load_kube_config
from .utils.errors import sanitize_exception
from .utils.events import EventRecorder

logger = logging.getLogger(__name__)

# Timer interval and startup timeout are fixed when the handlers are registered
HANDLER_CONFIG = OperatorConfig.from_env()
INITIAL_LIST_RETRY_SECONDS = 5


def build_reconciler_factory(config: OperatorConfig) -> Any:
    """Assemble the API clients shared by every reconcile pass.

    Returns:
        Callable taking a SiteCache and returning a SiteReconciler over it
    """
    custom_api = client.CustomObjectsApi()
    core_api = client.CoreV1Api()
    dependents = build_dependent_clients(core_api, client.AppsV1Api(), client.NetworkingV1Api())
    status_writer = SiteStatusWriter(custom_api)
    events = EventRecorder(core_api)

    def make_reconciler(cache: SiteCache) -> SiteReconciler:
        return SiteReconciler(
            cache=cache,
            fetcher=ContentFetcher(timeout=config.fetch_timeout_seconds),
            dependents=dependents,
            status_writer=status_writer,
            events=events,
            ingress_domain=config.ingress_domain,
        )

    return make_reconciler


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator and start the health server."""
    config = OperatorConfig.from_env()

    # Set up structured JSON logging
    structured_logging.setup_structured_logging(config.log_level)

    # Use annotations so kopf's bookkeeping never touches the status we own
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = 30.0
    settings.watching.server_timeout = config.watch_timeout_seconds
    settings.execution.max_workers = config.workers

    try:
        load_kube_config()
    except ConfigException as e:
        raise kopf.PermanentError(f"Cannot load Kubernetes configuration: {e}") from e

    memo.make_reconciler = build_reconciler_factory(config)
    memo.sync = CacheSync()
    memo.locks = SiteLocks()
    memo.health_server = start_health_server(config.health_port, lambda: memo.sync.has_synced)


@kopf.on.startup(id="initialList", timeout=HANDLER_CONFIG.cache_sync_timeout_seconds)
def initial_list(memo: kopf.Memo, **_: Any) -> None:
    """Check the DummySite list is reachable before watching starts.

    kopf retries until the timeout, after which the operator stops. An empty
    cluster is synced right away since no watch event will ever arrive.
    """
    try:
        resp = client.CustomObjectsApi().list_cluster_custom_object(
            group=API_GROUP,
            version=API_VERSION,
            plural=PLURAL_DUMMY_SITES,
        )
    except (ApiException, urllib3.exceptions.HTTPError) as e:
        raise kopf.TemporaryError(
            f"Cannot list {PLURAL_DUMMY_SITES}: {sanitize_exception(e)}",
            delay=INITIAL_LIST_RETRY_SECONDS,
        ) from e

    items = resp.get("items", []) if isinstance(resp, dict) else []
    logger.info("Initial list of %s: %d objects", PLURAL_DUMMY_SITES, len(items))
    if not items:
        memo.sync.mark_synced(0)


@kopf.index(API_GROUP_VERSION, KIND_DUMMY_SITE)
def site_index(namespace: str, name: str, body: kopf.Body, **_: Any) -> dict[SiteKey, dict[str, Any]]:
    """Index every DummySite by identity."""
    return index_site(namespace, name, body)


@kopf.on.event(API_GROUP_VERSION, KIND_DUMMY_SITE)
def index_ready(memo: kopf.Memo, **_: Any) -> None:
    """Mark the cache synced.

    kopf holds back every event handler until the initial list has been
    indexed, so the first call means the index is complete.
    """
    memo.sync.mark_synced()


@kopf.on.create(API_GROUP_VERSION, KIND_DUMMY_SITE)
@kopf.on.update(API_GROUP_VERSION, KIND_DUMMY_SITE)
@kopf.on.resume(API_GROUP_VERSION, KIND_DUMMY_SITE)
@kopf.timer(
    API_GROUP_VERSION,
    KIND_DUMMY_SITE,
    interval=max(HANDLER_CONFIG.resync_period_seconds, 1),
    initial_delay=max(HANDLER_CONFIG.resync_period_seconds, 1),
    when=lambda **_: HANDLER_CONFIG.resync_period_seconds > 0,
)
def reconcile_site(
    namespace: str,
    name: str,
    memo: kopf.Memo,
    site_index: kopf.Index,
    **_: Any,
) -> None:
    """Run one reconcile pass for the DummySite.

    The pass re-reads the object from the index, so a burst of events only
    ever acts on current state. Failures end up in the status and the logs;
    the next event or resync tick runs the pass again.
    """
    key = SiteKey(namespace or "default", name)
    with memo.locks.for_key(key):
        memo.make_reconciler(SiteCache(site_index)).reconcile(key)


@kopf.on.cleanup()
def shutdown(memo: kopf.Memo, **_: Any) -> None:
    """Stop the health server."""
    health_server = getattr(memo, "health_server", None)
    if health_server is not None:
        health_server.shutdown()

