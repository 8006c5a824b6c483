from .exceptions import *
from .base_client import BaseClient
from .utils import *

__all__ = [
    "BaseClient",
    "HealthCheckException",
    "DiscoveryException",
    "ClientConnectionException",
    "ConfigurationException",
    "DataValidationException",
    "VerificationException",
    "retry_with_backoff",
    "setup_logging",
    "safe_get",
    "equals_ignore_case",
    "split_csv",
    "summarize_names",
    "gather_with_concurrency",
]
