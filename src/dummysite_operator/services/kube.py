"""Typed access to the Kubernetes API for dependent resources and site status."""

from __future__ import annotations

import logging
from typing import Any, Callable

from kubernetes import client
from kubernetes.client.exceptions import ApiException

from ..constants import (
    API_GROUP,
    API_VERSION,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_INGRESS,
    KIND_SERVICE,
    PLURAL_DUMMY_SITES,
)
from ..models import SiteKey

logger = logging.getLogger(__name__)

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"

JSON_PATCH_CONTENT_TYPE = "application/json-patch+json"


class DependentResourceClient:
    """get / create / update for one namespaced built-in kind.

    The reconciler drives every dependent kind through ``apply``, so the four
    kinds share a single code path.
    """

    def __init__(
        self,
        kind: str,
        read_fn: Callable[..., Any],
        create_fn: Callable[..., Any],
        replace_fn: Callable[..., Any],
    ):
        self.kind = kind
        self._read = read_fn
        self._create = create_fn
        self._replace = replace_fn

    def get(self, namespace: str, name: str) -> tuple[Any, bool]:
        """Read an object.

        Returns:
            ``(object, True)`` if it exists, ``(None, False)`` if the API
            server answers 404

        Raises:
            ApiException: For any other API error
        """
        try:
            return self._read(name=name, namespace=namespace), True
        except ApiException as e:
            if e.status == 404:
                return None, False
            raise

    def create(self, body: dict[str, Any]) -> Any:
        metadata = body["metadata"]
        return self._create(namespace=metadata["namespace"], body=body)

    def update(self, body: dict[str, Any]) -> Any:
        """Replace the whole object with ``body``."""
        metadata = body["metadata"]
        return self._replace(name=metadata["name"], namespace=metadata["namespace"], body=body)

    def apply(self, body: dict[str, Any]) -> str:
        """Create the object if absent, otherwise overwrite it.

        Args:
            body: Fully specified desired object

        Returns:
            ``"created"`` or ``"updated"``

        Raises:
            ApiException: If the read or the write fails
        """
        metadata = body["metadata"]
        _, found = self.get(metadata["namespace"], metadata["name"])
        if not found:
            self.create(body)
            logger.debug("Created %s %s/%s", self.kind, metadata["namespace"], metadata["name"])
            return ACTION_CREATED
        self.update(body)
        logger.debug("Updated %s %s/%s", self.kind, metadata["namespace"], metadata["name"])
        return ACTION_UPDATED


def build_dependent_clients(
    core_api: client.CoreV1Api,
    apps_api: client.AppsV1Api,
    networking_api: client.NetworkingV1Api,
) -> dict[str, DependentResourceClient]:
    """Clients for every dependent kind, keyed by kind."""
    return {
        KIND_CONFIG_MAP: DependentResourceClient(
            KIND_CONFIG_MAP,
            core_api.read_namespaced_config_map,
            core_api.create_namespaced_config_map,
            core_api.replace_namespaced_config_map,
        ),
        KIND_DEPLOYMENT: DependentResourceClient(
            KIND_DEPLOYMENT,
            apps_api.read_namespaced_deployment,
            apps_api.create_namespaced_deployment,
            apps_api.replace_namespaced_deployment,
        ),
        KIND_SERVICE: DependentResourceClient(
            KIND_SERVICE,
            core_api.read_namespaced_service,
            core_api.create_namespaced_service,
            core_api.replace_namespaced_service,
        ),
        KIND_INGRESS: DependentResourceClient(
            KIND_INGRESS,
            networking_api.read_namespaced_ingress,
            networking_api.create_namespaced_ingress,
            networking_api.replace_namespaced_ingress,
        ),
    }


class SiteStatusWriter:
    """Writes the status subresource of DummySite objects."""

    def __init__(self, custom_api: client.CustomObjectsApi):
        self.custom_api = custom_api

    def write(self, key: SiteKey, status: dict[str, Any]) -> None:
        """Replace the whole status of a DummySite with ``status``.

        A JSON patch ``add`` of ``/status`` swaps the subresource wholesale,
        so fields missing from ``status`` are dropped instead of merged.

        Raises:
            ApiException: If the patch is rejected
        """
        self.custom_api.patch_namespaced_custom_object_status(
            group=API_GROUP,
            version=API_VERSION,
            namespace=key.namespace,
            plural=PLURAL_DUMMY_SITES,
            name=key.name,
            body=[{"op": "add", "path": "/status", "value": status}],
            _content_type=JSON_PATCH_CONTENT_TYPE,
        )


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig.

    Raises:
        kubernetes.config.ConfigException: If neither is available
    """
    from kubernetes import config

    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()
