"""Base client interface for the Azure and Kubernetes clients."""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import structlog

from akshealth.core.exceptions import DiscoveryException

logger = structlog.get_logger(__name__)


class BaseClient(ABC):
    """Abstract base class for clients that fetch cluster or cloud state."""
    
    def __init__(self, config: Dict[str, Any], name: Optional[str] = None):
        self.config = config
        self.name = name or self.__class__.__name__
        self._connected = False
        self.logger = logger.bind(client=self.name)
    
    @abstractmethod
    async def connect(self) -> None:
        """Create the underlying SDK client."""
        pass
    
    @abstractmethod
    async def disconnect(self) -> None:
        """Release the underlying SDK client."""
        pass
    
    @property
    def is_connected(self) -> bool:
        return self._connected
    
    def _ensure_connected(self, discovery_type: str) -> None:
        """Raise if a fetch is attempted before connect()."""
        if not self._connected:
            raise DiscoveryException(discovery_type, "Client not connected")
    
    async def __aenter__(self):
        await self.connect()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
