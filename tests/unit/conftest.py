"""Shared fakes for DummySite operator unit tests."""

from __future__ import annotations

import copy
from typing import Any
from unittest.mock import MagicMock

import pytest
from kubernetes.client.exceptions import ApiException

from dummysite_operator.constants import (
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_INGRESS,
    KIND_SERVICE,
)
from dummysite_operator.models import SiteDescriptor, SiteKey
from dummysite_operator.reconciler import SiteReconciler
from dummysite_operator.services.fetcher import ContentFetcher
from dummysite_operator.services.kube import DependentResourceClient

DEPENDENT_KINDS = (KIND_CONFIG_MAP, KIND_DEPLOYMENT, KIND_SERVICE, KIND_INGRESS)


def make_site_object(
    name: str = "demo",
    namespace: str = "team",
    source_url: Any = "http://ok.example/",
    uid: str = "uid-1234",
    resource_version: str = "1",
    generation: int = 1,
) -> dict[str, Any]:
    """Build a raw DummySite object as the CustomObjectsApi returns it."""
    spec: dict[str, Any] = {}
    if source_url is not None:
        spec["sourceURL"] = source_url
    return {
        "apiVersion": "codegeek.com/v1",
        "kind": "DummySite",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": uid,
            "resourceVersion": resource_version,
            "generation": generation,
        },
        "spec": spec,
    }


class FakeResourceStore:
    """In-memory stand-in for the namespaced endpoints of the API server."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}

    def fail(self, operation: str, kind: str, status: int = 500, error: Exception | None = None) -> None:
        if error is None:
            error = ApiException(status=status, reason="Injected failure")
        self.failures[(operation, kind)] = error

    def heal(self) -> None:
        self.failures.clear()

    def writes(self, operation: str | None = None) -> list[tuple[str, str, str, str]]:
        ops = {"create", "replace"} if operation is None else {operation}
        return [call for call in self.calls if call[0] in ops]

    def _check(self, operation: str, kind: str) -> None:
        error = self.failures.get((operation, kind))
        if error is not None:
            raise error

    def client(self, kind: str) -> DependentResourceClient:
        def read(name: str, namespace: str) -> dict[str, Any]:
            self.calls.append(("read", kind, namespace, name))
            self._check("read", kind)
            if (kind, namespace, name) not in self.objects:
                raise ApiException(status=404, reason="Not Found")
            return copy.deepcopy(self.objects[(kind, namespace, name)])

        def create(namespace: str, body: dict[str, Any]) -> dict[str, Any]:
            name = body["metadata"]["name"]
            self.calls.append(("create", kind, namespace, name))
            self._check("create", kind)
            if (kind, namespace, name) in self.objects:
                raise ApiException(status=409, reason="AlreadyExists")
            self.objects[(kind, namespace, name)] = copy.deepcopy(body)
            return body

        def replace(name: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
            self.calls.append(("replace", kind, namespace, name))
            self._check("replace", kind)
            if (kind, namespace, name) not in self.objects:
                raise ApiException(status=404, reason="Not Found")
            self.objects[(kind, namespace, name)] = copy.deepcopy(body)
            return body

        return DependentResourceClient(kind, read, create, replace)

    def clients(self) -> dict[str, DependentResourceClient]:
        return {kind: self.client(kind) for kind in DEPENDENT_KINDS}


class FakeSiteCache:
    """Cache double exposing the same ``get`` contract as SiteCache."""

    def __init__(self) -> None:
        self.objects: dict[SiteKey, dict[str, Any]] = {}

    def put(self, obj: dict[str, Any]) -> SiteKey:
        key = SiteKey.from_object(obj)
        assert key is not None
        self.objects[key] = obj
        return key

    def delete(self, key: SiteKey) -> None:
        self.objects.pop(key, None)

    def get(self, key: SiteKey) -> SiteDescriptor | None:
        obj = self.objects.get(key)
        if obj is None:
            return None
        return SiteDescriptor.from_object(copy.deepcopy(obj))


class FakeStatusWriter:
    """Records status writes and mirrors them into the fake cache."""

    def __init__(self, cache: FakeSiteCache) -> None:
        self.cache = cache
        self.writes: list[tuple[SiteKey, dict[str, Any]]] = []
        self.error: ApiException | None = None

    def write(self, key: SiteKey, status: dict[str, Any]) -> None:
        if self.error is not None:
            raise self.error
        self.writes.append((key, copy.deepcopy(status)))
        if key in self.cache.objects:
            self.cache.objects[key]["status"] = copy.deepcopy(status)

    @property
    def last(self) -> dict[str, Any]:
        return self.writes[-1][1]


def make_response(status_code: int = 200, body: bytes = b"", reason: str = "OK") -> MagicMock:
    """Streamed requests.Response double whose raw stream yields ``body`` once."""
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.raw.read1.side_effect = [body, b""] if body else [b""]
    return response


def make_session(responses: dict[str, tuple[int, bytes, str]]) -> MagicMock:
    """requests.Session double answering GETs from a URL -> (status, body, reason) map."""
    session = MagicMock()
    session.get.side_effect = lambda url, **kwargs: make_response(*responses[url])
    return session


@pytest.fixture
def site_cache() -> FakeSiteCache:
    return FakeSiteCache()


@pytest.fixture
def resource_store() -> FakeResourceStore:
    return FakeResourceStore()


@pytest.fixture
def status_writer(site_cache: FakeSiteCache) -> FakeStatusWriter:
    return FakeStatusWriter(site_cache)


@pytest.fixture
def http_responses() -> dict[str, tuple[int, bytes, str]]:
    return {
        "http://ok.example/": (200, b"<html>hi</html>", "OK"),
        "http://bad.example": (500, b"boom", "Internal Server Error"),
    }


@pytest.fixture
def events() -> MagicMock:
    return MagicMock()


@pytest.fixture
def reconciler(
    site_cache: FakeSiteCache,
    resource_store: FakeResourceStore,
    status_writer: FakeStatusWriter,
    http_responses: dict[str, tuple[int, bytes, str]],
    events: MagicMock,
) -> SiteReconciler:
    return SiteReconciler(
        cache=site_cache,
        fetcher=ContentFetcher(session=make_session(http_responses)),
        dependents=resource_store.clients(),
        status_writer=status_writer,
        events=events,
    )
