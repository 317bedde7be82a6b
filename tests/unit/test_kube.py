"""Tests for the Kubernetes API facade."""

from __future__ import annotations

from unittest.mock import MagicMock, Mock

import pytest
from kubernetes.client.exceptions import ApiException

from dummysite_operator.models import SiteKey
from dummysite_operator.services.kube import (
    DependentResourceClient,
    SiteStatusWriter,
    build_dependent_clients,
)

BODY = {"metadata": {"name": "demo", "namespace": "team"}, "data": {"index.html": "x"}}


@pytest.fixture
def fns():
    return Mock(), Mock(), Mock()


@pytest.fixture
def resource_client(fns):
    read, create, replace = fns
    return DependentResourceClient("ConfigMap", read, create, replace)


class TestDependentResourceClient:
    """Test cases for DependentResourceClient."""

    def test_get_found(self, resource_client, fns):
        """Test an existing object is returned with found=True."""
        read, _, _ = fns
        read.return_value = {"metadata": {"name": "demo"}}

        obj, found = resource_client.get("team", "demo")

        assert found is True
        assert obj == {"metadata": {"name": "demo"}}
        read.assert_called_once_with(name="demo", namespace="team")

    def test_get_not_found(self, resource_client, fns):
        """Test a 404 is reported as not found."""
        read, _, _ = fns
        read.side_effect = ApiException(status=404)

        assert resource_client.get("team", "demo") == (None, False)

    def test_get_other_error_propagates(self, resource_client, fns):
        """Test non-404 errors are raised."""
        read, _, _ = fns
        read.side_effect = ApiException(status=403)

        with pytest.raises(ApiException):
            resource_client.get("team", "demo")

    def test_apply_creates_when_absent(self, resource_client, fns):
        """Test apply creates a missing object."""
        read, create, replace = fns
        read.side_effect = ApiException(status=404)

        assert resource_client.apply(BODY) == "created"
        create.assert_called_once_with(namespace="team", body=BODY)
        replace.assert_not_called()

    def test_apply_replaces_when_present(self, resource_client, fns):
        """Test apply fully replaces an existing object."""
        read, create, replace = fns
        read.return_value = {"metadata": {"name": "demo", "resourceVersion": "3"}}

        assert resource_client.apply(BODY) == "updated"
        replace.assert_called_once_with(name="demo", namespace="team", body=BODY)
        create.assert_not_called()

    def test_apply_write_failure_propagates(self, resource_client, fns):
        """Test write errors are not swallowed."""
        read, create, _ = fns
        read.side_effect = ApiException(status=404)
        create.side_effect = ApiException(status=500)

        with pytest.raises(ApiException):
            resource_client.apply(BODY)


def test_build_dependent_clients_wires_every_kind():
    """Test each kind is bound to its own API methods."""
    core, apps, networking = MagicMock(), MagicMock(), MagicMock()
    clients = build_dependent_clients(core, apps, networking)

    assert set(clients) == {"ConfigMap", "Deployment", "Service", "Ingress"}

    clients["Deployment"].create({"metadata": {"name": "demo", "namespace": "team"}})
    apps.create_namespaced_deployment.assert_called_once()

    clients["Ingress"].update({"metadata": {"name": "demo", "namespace": "team"}})
    networking.replace_namespaced_ingress.assert_called_once()

    clients["Service"].get("team", "demo")
    core.read_namespaced_service.assert_called_once_with(name="demo", namespace="team")


def test_status_writer_replaces_status_subresource():
    """Test the status is written through the status subresource as a whole."""
    api = MagicMock()
    status = {"state": "Ready", "endpoint": "http://demo.team.svc.cluster.local"}

    SiteStatusWriter(api).write(SiteKey("team", "demo"), status)

    api.patch_namespaced_custom_object_status.assert_called_once_with(
        group="codegeek.com",
        version="v1",
        namespace="team",
        plural="dummysites",
        name="demo",
        body=[{"op": "add", "path": "/status", "value": status}],
        _content_type="application/json-patch+json",
    )


def test_status_writer_drops_stale_fields():
    """Test fields absent from the new status are not carried over from the old one."""
    api = MagicMock()
    stored = {"state": "Error", "endpoint": "", "message": "HTTP 500", "lastError": "boom"}

    def apply_patch(body, **kwargs):
        # JSON patch semantics of a single add operation on /status
        for op in body:
            assert op["op"] == "add" and op["path"] == "/status"
            stored.clear()
            stored.update(op["value"])

    api.patch_namespaced_custom_object_status.side_effect = apply_patch

    SiteStatusWriter(api).write(SiteKey("team", "demo"), {"state": "Ready", "endpoint": "http://x"})

    assert stored == {"state": "Ready", "endpoint": "http://x"}
