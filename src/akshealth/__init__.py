"""Best-practice health check for Azure Kubernetes Service clusters."""

__version__ = "1.0.0"
