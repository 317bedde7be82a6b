"""Builders for the resources that make up a running DummySite."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

from ..constants import (
    API_GROUP_VERSION,
    CONTENT_FILENAME,
    CONTENT_MOUNT_PATH,
    CONTENT_NAME_SUFFIX,
    CONTENT_VOLUME_NAME,
    CONTROLLER_NAME,
    DEFAULT_INGRESS_DOMAIN,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_DUMMY_SITE,
    KIND_INGRESS,
    KIND_SERVICE,
    LABEL_APP,
    LABEL_MANAGED_BY,
    LABEL_SITE_NAME,
    SITE_CONTAINER_NAME,
    SITE_IMAGE,
    SITE_PORT,
)
from ..models import SiteDescriptor


@dataclass(frozen=True)
class DependentResource:
    """A desired dependent object together with its kind and name."""

    kind: str
    name: str
    body: dict[str, Any]


def content_store_name(site_name: str) -> str:
    return f"{site_name}{CONTENT_NAME_SUFFIX}"


def workload_name(site_name: str) -> str:
    return site_name


def service_name(site_name: str) -> str:
    return site_name


def ingress_name(site_name: str) -> str:
    return site_name


def ingress_host(site_name: str, domain: str = DEFAULT_INGRESS_DOMAIN) -> str:
    return f"{site_name}.{domain}"


def build_owner_reference(site: SiteDescriptor) -> dict[str, Any]:
    """Owner reference that lets the garbage collector cascade deletes."""
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_DUMMY_SITE,
        "name": site.name,
        "uid": site.uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


def build_metadata(site: SiteDescriptor, name: str) -> dict[str, Any]:
    return {
        "name": name,
        "namespace": site.namespace,
        "labels": build_labels(site),
        "ownerReferences": [build_owner_reference(site)],
    }


def build_labels(site: SiteDescriptor) -> dict[str, str]:
    return {
        LABEL_APP: site.name,
        LABEL_MANAGED_BY: CONTROLLER_NAME,
        LABEL_SITE_NAME: site.name,
    }


def build_config_map(site: SiteDescriptor, content: bytes) -> dict[str, Any]:
    """ConfigMap holding the fetched page under a fixed filename.

    UTF-8 pages go to ``data`` unchanged; any other byte sequence goes to
    ``binaryData`` so nginx still serves exactly the bytes that were fetched.
    """
    config_map: dict[str, Any] = {
        "apiVersion": "v1",
        "kind": KIND_CONFIG_MAP,
        "metadata": build_metadata(site, content_store_name(site.name)),
    }
    try:
        config_map["data"] = {CONTENT_FILENAME: content.decode("utf-8")}
    except UnicodeDecodeError:
        config_map["binaryData"] = {CONTENT_FILENAME: base64.b64encode(content).decode("ascii")}
    return config_map


def build_deployment(site: SiteDescriptor) -> dict[str, Any]:
    """Single-replica nginx Deployment serving the content ConfigMap read-only."""
    selector = {LABEL_APP: site.name}
    return {
        "apiVersion": "apps/v1",
        "kind": KIND_DEPLOYMENT,
        "metadata": build_metadata(site, workload_name(site.name)),
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": selector},
            "template": {
                "metadata": {"labels": build_labels(site)},
                "spec": {
                    "containers": [
                        {
                            "name": SITE_CONTAINER_NAME,
                            "image": SITE_IMAGE,
                            "ports": [{"containerPort": SITE_PORT}],
                            "volumeMounts": [
                                {
                                    "name": CONTENT_VOLUME_NAME,
                                    "mountPath": CONTENT_MOUNT_PATH,
                                    "readOnly": True,
                                }
                            ],
                        }
                    ],
                    "volumes": [
                        {
                            "name": CONTENT_VOLUME_NAME,
                            "configMap": {"name": content_store_name(site.name)},
                        }
                    ],
                },
            },
        },
    }


def build_service(site: SiteDescriptor) -> dict[str, Any]:
    """ClusterIP Service in front of the site's pods."""
    return {
        "apiVersion": "v1",
        "kind": KIND_SERVICE,
        "metadata": build_metadata(site, service_name(site.name)),
        "spec": {
            "type": "ClusterIP",
            "selector": {LABEL_APP: site.name},
            "ports": [
                {
                    "port": SITE_PORT,
                    "targetPort": SITE_PORT,
                    "protocol": "TCP",
                }
            ],
        },
    }


def build_ingress(site: SiteDescriptor, domain: str = DEFAULT_INGRESS_DOMAIN) -> dict[str, Any]:
    """Ingress exposing the Service under ``<name>.<domain>``."""
    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": KIND_INGRESS,
        "metadata": build_metadata(site, ingress_name(site.name)),
        "spec": {
            "rules": [
                {
                    "host": ingress_host(site.name, domain),
                    "http": {
                        "paths": [
                            {
                                "path": "/",
                                "pathType": "Prefix",
                                "backend": {
                                    "service": {
                                        "name": service_name(site.name),
                                        "port": {"number": SITE_PORT},
                                    }
                                },
                            }
                        ]
                    },
                }
            ]
        },
    }


def build_dependent_resources(
    site: SiteDescriptor,
    content: bytes,
    ingress_domain: str = DEFAULT_INGRESS_DOMAIN,
) -> list[DependentResource]:
    """Build every dependent resource of a site in apply order.

    The ConfigMap comes first so the Deployment's volume resolves, then the
    Deployment, Service and Ingress.

    Args:
        site: Decoded DummySite
        content: Page body bytes fetched from ``spec.sourceURL``
        ingress_domain: Domain suffix for the Ingress host

    Returns:
        Desired resources, in the order they must be applied
    """
    return [
        DependentResource(KIND_CONFIG_MAP, content_store_name(site.name), build_config_map(site, content)),
        DependentResource(KIND_DEPLOYMENT, workload_name(site.name), build_deployment(site)),
        DependentResource(KIND_SERVICE, service_name(site.name), build_service(site)),
        DependentResource(KIND_INGRESS, ingress_name(site.name), build_ingress(site, ingress_domain)),
    ]
