"""Azure Container Registry client."""

from typing import Dict, Any, List
import structlog
from azure.mgmt.containerregistry import ContainerRegistryManagementClient
from azure.core.exceptions import AzureError

from akshealth.core.base_client import BaseClient
from akshealth.core.exceptions import ClientConnectionException, DiscoveryException
from akshealth.core.utils import retry_with_backoff

logger = structlog.get_logger(__name__)


class ContainerRegistryClient(BaseClient):
    """Lists the container registries visible in the subscription."""
    
    def __init__(self, credential, subscription_id: str, config: Dict[str, Any]):
        super().__init__(config, "ContainerRegistryClient")
        self.credential = credential
        self.subscription_id = subscription_id
        self._client = None
    
    async def connect(self) -> None:
        try:
            self._client = ContainerRegistryManagementClient(
                credential=self.credential,
                subscription_id=self.subscription_id
            )
            self._connected = True
            self.logger.info("Container registry client connected successfully")
        except Exception as e:
            raise ClientConnectionException("ContainerRegistry", f"Connection failed: {e}")
    
    async def disconnect(self) -> None:
        if self._client:
            self._client.close()
            self._connected = False
    
    @retry_with_backoff(max_retries=3)
    async def list_registries(self) -> List[Dict[str, Any]]:
        """List all registries in the subscription as plain dicts."""
        self._ensure_connected("ContainerRegistry")
        
        try:
            registries = [registry.as_dict() for registry in self._client.registries.list()]
            self.logger.info(f"Discovered {len(registries)} container registries")
            return registries
        except AzureError as e:
            raise DiscoveryException("ContainerRegistry", f"Failed to list registries: {e}")
