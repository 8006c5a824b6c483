from .client_factory import AzureClientFactory
from .aks_client import AKSClient
from .registry_client import ContainerRegistryClient
from .authorization_client import AuthorizationClient, AzureRoleAssignmentVerifier


__all__ = [
    "AzureClientFactory",
    "AKSClient",
    "ContainerRegistryClient",
    "AuthorizationClient",
    "AzureRoleAssignmentVerifier"
]
