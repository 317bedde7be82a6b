"""Typed views of DummySite objects."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, NamedTuple
from urllib.parse import urlparse

from .constants import CLUSTER_DOMAIN, STATE_PENDING
from .utils.errors import SpecValidationError


class SiteKey(NamedTuple):
    """Identity of a DummySite: namespace and name."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> SiteKey | None:
        metadata = obj.get("metadata") or {}
        name = metadata.get("name")
        if not name:
            return None
        return cls(metadata.get("namespace") or "default", name)


@dataclass(frozen=True)
class SiteDescriptor:
    """Decoded DummySite object.

    Built once at the cache boundary so the reconciler never reads untyped
    nested dictionaries.
    """

    namespace: str
    name: str
    uid: str
    source_url: str
    resource_version: str = ""
    generation: int = 0
    status: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def key(self) -> SiteKey:
        return SiteKey(self.namespace, self.name)

    @property
    def state(self) -> str:
        """Reported state; an object the controller never touched is Pending."""
        return self.status.get("state") or STATE_PENDING

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> SiteDescriptor:
        """Decode a raw DummySite object.

        Args:
            obj: DummySite object as returned by the CustomObjectsApi

        Returns:
            The decoded descriptor

        Raises:
            SpecValidationError: If the object has no name or its spec lacks
                a usable ``sourceURL``
        """
        metadata = obj.get("metadata") or {}
        status = obj.get("status")
        site = cls(
            namespace=metadata.get("namespace") or "default",
            name=metadata.get("name") or "",
            uid=metadata.get("uid") or "",
            source_url="",
            resource_version=metadata.get("resourceVersion") or "",
            generation=int(metadata.get("generation") or 0),
            status=dict(status) if isinstance(status, dict) else {},
        )

        if not site.name:
            raise SpecValidationError("metadata.name is required")

        spec = obj.get("spec")
        if not isinstance(spec, dict):
            raise SpecValidationError("spec is missing", site=site)

        source_url = validate_source_url(spec.get("sourceURL"), site)
        return replace(site, source_url=source_url)


def validate_source_url(value: Any, site: SiteDescriptor | None = None) -> str:
    """Check that ``spec.sourceURL`` is an absolute http(s) URL and return it."""
    if value is None or value == "":
        raise SpecValidationError("spec.sourceURL is required", site=site)
    if not isinstance(value, str):
        raise SpecValidationError(
            f"spec.sourceURL must be a string, got {type(value).__name__}", site=site
        )

    url = value.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise SpecValidationError(
            f"spec.sourceURL must be an absolute http or https URL: {url!r}", site=site
        )
    return url


def site_endpoint(name: str, namespace: str, cluster_domain: str = CLUSTER_DOMAIN) -> str:
    """In-cluster URL of the Service fronting a site."""
    return f"http://{name}.{namespace}.{cluster_domain}"
