from .azure.client_factory import AzureClientFactory
from .kubernetes.client_factory import KubernetesClientFactory

__all__ = ["AzureClientFactory", "KubernetesClientFactory"]
