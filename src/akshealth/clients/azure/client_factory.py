# src/akshealth/clients/azure/client_factory.py
"""Azure client factory for creating and managing Azure service clients."""

from typing import Dict, Any
import structlog
from azure.identity import DefaultAzureCredential, ClientSecretCredential

from akshealth.core.exceptions import ClientConnectionException, ConfigurationException
from .aks_client import AKSClient
from .authorization_client import AuthorizationClient
from .registry_client import ContainerRegistryClient

logger = structlog.get_logger(__name__)


class AzureClientFactory:
    """Factory for creating Azure service clients."""
    
    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.subscription_id = config.get("subscription_id")
        self.tenant_id = config.get("tenant_id")
        self.client_id = config.get("client_id")
        self.client_secret = config.get("client_secret")
        
        if not self.subscription_id:
            raise ConfigurationException("Azure subscription_id is required (set AZURE_SUBSCRIPTION_ID)")
        
        self._credential = None
        self._clients = {}
        self.logger = logger.bind(factory="azure")
    
    def _get_credential(self):
        """Get Azure credential based on configuration."""
        if self._credential:
            return self._credential
        
        try:
            if self.client_id and self.client_secret and self.tenant_id:
                self._credential = ClientSecretCredential(
                    tenant_id=self.tenant_id,
                    client_id=self.client_id,
                    client_secret=self.client_secret
                )
                self.logger.info("Using service principal authentication")
            else:
                # Managed identity, Azure CLI login, environment, ...
                self._credential = DefaultAzureCredential()
                self.logger.info("Using default credential chain")
            
            return self._credential
            
        except Exception as e:
            raise ClientConnectionException("Azure", f"Failed to create credential: {e}")
    
    def create_aks_client(self) -> AKSClient:
        return AKSClient(
            credential=self._get_credential(),
            subscription_id=self.subscription_id,
            config=self.config
        )
    
    def create_registry_client(self) -> ContainerRegistryClient:
        return ContainerRegistryClient(
            credential=self._get_credential(),
            subscription_id=self.subscription_id,
            config=self.config
        )
    
    def create_authorization_client(self) -> AuthorizationClient:
        return AuthorizationClient(
            credential=self._get_credential(),
            subscription_id=self.subscription_id,
            config=self.config
        )
    
    async def create_all_clients(self) -> Dict[str, Any]:
        """Create and connect all Azure clients."""
        clients = {
            "aks": self.create_aks_client(),
            "registry": self.create_registry_client(),
            "authorization": self.create_authorization_client()
        }
        
        for name, client in clients.items():
            try:
                await client.connect()
                self.logger.info(f"Connected {name} client successfully")
            except Exception as e:
                self.logger.error(f"Failed to connect {name} client", error=str(e))
                self._clients = clients
                await self.disconnect_all()
                raise ClientConnectionException(name, str(e))
        
        self._clients = clients
        return clients
    
    async def disconnect_all(self) -> None:
        """Disconnect all clients (for cleanup)."""
        for name, client in self._clients.items():
            try:
                await client.disconnect()
            except Exception as e:
                self.logger.warning(f"Error disconnecting {name} client: {e}")
        
        self._clients = {}
        self.logger.info("Azure client factory cleanup completed")
