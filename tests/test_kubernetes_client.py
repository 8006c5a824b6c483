"""Tests for the Kubernetes listing client against a mocked API."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from kubernetes.client.rest import ApiException

from akshealth.clients.kubernetes.k8s_client import CONSTRAINT_TEMPLATE_CRD, KubernetesClient
from akshealth.core.exceptions import DiscoveryException


@pytest.fixture
def k8s():
    k8s_client = KubernetesClient({}, cluster_name="aks")
    k8s_client.api_client = MagicMock()
    k8s_client.api_client.sanitize_for_serialization.side_effect = lambda item: dict(item)
    k8s_client.v1 = MagicMock()
    k8s_client.apiextensions_v1 = MagicMock()
    k8s_client.custom_objects = MagicMock()
    k8s_client._connected = True
    return k8s_client


async def test_secret_payloads_are_dropped(k8s):
    k8s.v1.list_secret_for_all_namespaces.return_value = SimpleNamespace(items=[
        {"metadata": {"name": "db", "namespace": "app"}, "type": "Opaque",
         "data": {"password": "c2VjcmV0"}, "stringData": {"token": "x"}},
    ])

    secrets = await k8s.list_secrets()

    assert secrets == [{"metadata": {"name": "db", "namespace": "app"}, "type": "Opaque"}]


async def test_constraint_template_crd_missing(k8s):
    k8s.apiextensions_v1.read_custom_resource_definition.side_effect = ApiException(status=404)

    assert await k8s.has_constraint_templates() is False
    k8s.apiextensions_v1.read_custom_resource_definition.assert_called_once_with(CONSTRAINT_TEMPLATE_CRD)


async def test_constraint_templates_listed(k8s):
    k8s.custom_objects.list_cluster_custom_object.return_value = {
        "items": [{"metadata": {"name": "k8sallowedrepos"}}]
    }

    assert await k8s.has_constraint_templates() is True
    templates = await k8s.list_constraint_templates()
    assert templates[0]["metadata"]["name"] == "k8sallowedrepos"


async def test_listing_before_connect_fails():
    with pytest.raises(DiscoveryException):
        await KubernetesClient({}).list_all_resources()
