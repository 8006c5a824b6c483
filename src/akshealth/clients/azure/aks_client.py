"""Azure Kubernetes Service client."""

from typing import Dict, Any
import structlog
from azure.mgmt.containerservice import ContainerServiceClient
from azure.core.exceptions import AzureError, ResourceNotFoundError

from akshealth.core.base_client import BaseClient
from akshealth.core.exceptions import ClientConnectionException, DiscoveryException
from akshealth.core.utils import retry_with_backoff

logger = structlog.get_logger(__name__)


class AKSClient(BaseClient):
    """Client for Azure Kubernetes Service operations."""
    
    def __init__(self, credential, subscription_id: str, config: Dict[str, Any]):
        super().__init__(config, "AKSClient")
        self.credential = credential
        self.subscription_id = subscription_id
        self._client = None
    
    async def connect(self) -> None:
        """Connect to AKS service."""
        try:
            self._client = ContainerServiceClient(
                credential=self.credential,
                subscription_id=self.subscription_id
            )
            self._connected = True
            self.logger.info("AKS client connected successfully")
        except Exception as e:
            raise ClientConnectionException("AKS", f"Connection failed: {e}")
    
    async def disconnect(self) -> None:
        """Disconnect from AKS service."""
        if self._client:
            self._client.close()
            self._connected = False
            self.logger.info("AKS client disconnected")
    
    @retry_with_backoff(max_retries=3)
    async def get_cluster(self, resource_group: str, cluster_name: str) -> Dict[str, Any]:
        """Fetch the managed cluster as a plain dict."""
        self._ensure_connected("AKS")
        
        try:
            cluster = self._client.managed_clusters.get(resource_group, cluster_name)
            self.logger.info(f"Fetched cluster {cluster_name}", resource_group=resource_group)
            return cluster.as_dict()
        except ResourceNotFoundError as e:
            raise DiscoveryException("AKS", f"Cluster {cluster_name} not found in {resource_group}: {e}")
        except AzureError as e:
            raise DiscoveryException("AKS", f"Failed to fetch cluster {cluster_name}: {e}")
    
    @retry_with_backoff(max_retries=3)
    async def get_cluster_credentials(self, cluster_name: str, resource_group: str,
                                      admin: bool = True) -> bytes:
        """Get the kubeconfig for the cluster."""
        self._ensure_connected("AKS")
        
        try:
            if admin:
                credentials = self._client.managed_clusters.list_cluster_admin_credentials(
                    resource_group, cluster_name
                )
            else:
                credentials = self._client.managed_clusters.list_cluster_user_credentials(
                    resource_group, cluster_name
                )
            if not credentials.kubeconfigs:
                raise DiscoveryException("AKS", f"No kubeconfig returned for {cluster_name}")
            return credentials.kubeconfigs[0].value
            
        except AzureError as e:
            raise DiscoveryException("AKS", f"Failed to get cluster credentials: {e}")
