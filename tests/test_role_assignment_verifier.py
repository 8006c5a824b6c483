"""Tests for the Azure-backed AcrPull verifier."""

from types import SimpleNamespace
from unittest.mock import MagicMock

from azure.core.exceptions import HttpResponseError

from akshealth.clients.azure.authorization_client import AuthorizationClient, AzureRoleAssignmentVerifier
from akshealth.discovery.inventory_builder import InventoryBuilder
from akshealth.engine.verification import ACR_PULL_ROLE_DEFINITION_ID, RoleAssignmentStatus
from tests.factories import make_registry

ROLE_PREFIX = "/subscriptions/sub/providers/Microsoft.Authorization/roleDefinitions/"
READER_ROLE = "acdd72a7-3385-48ef-bd42-f606fba81ae7"


def _verifier(assignments=None, error=None, request_timeout=None):
    client = AuthorizationClient(credential=None, subscription_id="sub", config={})
    sdk = MagicMock()
    if error:
        sdk.role_assignments.list_for_scope.side_effect = error
    else:
        sdk.role_assignments.list_for_scope.return_value = [
            SimpleNamespace(role_definition_id=ROLE_PREFIX + role) for role in assignments or ()
        ]
    client._client = sdk
    client._connected = True
    return AzureRoleAssignmentVerifier(client, request_timeout=request_timeout), sdk


async def test_granted():
    verifier, sdk = _verifier([READER_ROLE, ACR_PULL_ROLE_DEFINITION_ID])
    registry = make_registry()

    assert await verifier.verify(registry, "kubelet-oid") == RoleAssignmentStatus.GRANTED
    sdk.role_assignments.list_for_scope.assert_called_once_with(
        registry.id, filter="assignedTo('kubelet-oid')"
    )


async def test_absent():
    verifier, _ = _verifier([READER_ROLE])
    assert await verifier.verify(make_registry(), "kubelet-oid") == RoleAssignmentStatus.ABSENT


async def test_azure_error_is_indeterminate():
    verifier, _ = _verifier(error=HttpResponseError(message="AuthorizationFailed"))
    assert await verifier.verify(make_registry(), "kubelet-oid") == RoleAssignmentStatus.INDETERMINATE


async def test_registry_without_id_is_indeterminate():
    verifier, sdk = _verifier([ACR_PULL_ROLE_DEFINITION_ID])
    assert await verifier.verify(make_registry(id=None), "kubelet-oid") == RoleAssignmentStatus.INDETERMINATE
    sdk.role_assignments.list_for_scope.assert_not_called()


async def test_request_timeout_bounds_each_sdk_request():
    verifier, sdk = _verifier([ACR_PULL_ROLE_DEFINITION_ID], request_timeout=12.0)
    registry = make_registry()

    assert await verifier.verify(registry, "kubelet-oid") == RoleAssignmentStatus.GRANTED
    sdk.role_assignments.list_for_scope.assert_called_once_with(
        registry.id, filter="assignedTo('kubelet-oid')", connection_timeout=12.0, read_timeout=12.0
    )


def test_builder_verifier_uses_audit_timeout():
    builder = InventoryBuilder({"audit": {"verification_timeout_seconds": 9.0}})
    builder.azure_clients = {"authorization": AuthorizationClient(credential=None, subscription_id="sub", config={})}

    assert builder.verifier.request_timeout == 9.0
