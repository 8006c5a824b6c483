"""Custom exceptions for the AKS health check."""

from typing import Optional, Dict, Any


class HealthCheckException(Exception):
    """Base exception for the AKS health check."""
    
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DiscoveryException(HealthCheckException):
    """Raised when fetching cluster or cloud state fails."""
    
    def __init__(self, discovery_type: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.discovery_type = discovery_type
        super().__init__(f"Discovery failed for {discovery_type}: {message}", details)


class ClientConnectionException(HealthCheckException):
    """Raised when client connections fail."""
    
    def __init__(self, client_type: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.client_type = client_type
        super().__init__(f"{client_type} connection failed: {message}", details)


class DataValidationException(HealthCheckException):
    """Raised when a fetched payload cannot be normalized."""
    
    def __init__(self, field: str, value: Any, message: str):
        self.field = field
        self.value = value
        super().__init__(f"Validation failed for {field}: {message}")


class ConfigurationException(HealthCheckException):
    """Raised when configuration is invalid."""
    pass


class VerificationException(HealthCheckException):
    """Raised when a role assignment lookup cannot be completed."""
    
    def __init__(self, registry: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.registry = registry
        super().__init__(f"Role assignment verification failed for {registry}: {message}", details)
