from .settings import Settings, AzureSettings, KubernetesSettings, AuditSettings, LogLevel

__all__ = ["Settings", "AzureSettings", "KubernetesSettings", "AuditSettings", "LogLevel"]
