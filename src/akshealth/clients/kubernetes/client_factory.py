"""Kubernetes client factory."""

from typing import Dict, Any, Optional
import structlog

from .k8s_client import KubernetesClient

logger = structlog.get_logger(__name__)


class KubernetesClientFactory:
    """Factory for creating Kubernetes clients."""
    
    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.kubeconfig_path = config.get("kubeconfig_path")
        self.context = config.get("context")
        
        self.logger = logger.bind(factory="kubernetes")
    
    def create_client(self, kubeconfig_data: Optional[bytes] = None,
                      cluster_name: Optional[str] = None) -> KubernetesClient:
        return KubernetesClient(
            config_dict=self.config,
            kubeconfig_path=self.kubeconfig_path,
            context=self.context,
            kubeconfig_data=kubeconfig_data,
            cluster_name=cluster_name
        )
    
    def create_client_from_cluster_credentials(self, kubeconfig_data: bytes,
                                               cluster_name: Optional[str] = None) -> KubernetesClient:
        """Create client from AKS cluster credentials."""
        self.logger.debug("Creating client from cluster credentials", cluster=cluster_name)
        return self.create_client(kubeconfig_data=kubeconfig_data, cluster_name=cluster_name)
