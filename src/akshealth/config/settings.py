# src/akshealth/config/settings.py
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from typing import Annotated, Optional, List
from enum import Enum
from dotenv import load_dotenv

# Load .env file explicitly
load_dotenv()


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AzureSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AZURE_")
    
    subscription_id: Optional[str] = Field(None, description="Azure subscription ID")
    tenant_id: Optional[str] = Field(None, description="Azure tenant ID")
    client_id: Optional[str] = Field(None, description="Azure client ID for service principal")
    client_secret: Optional[str] = Field(None, description="Azure client secret")


class KubernetesSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="K8S_")
    
    kubeconfig_path: Optional[str] = Field(None, description="Kubeconfig to use instead of fetching AKS credentials")
    context: Optional[str] = Field(None, description="Kubernetes context to use")
    use_admin_credentials: bool = Field(True, description="Fetch cluster admin credentials rather than user credentials")


class AuditSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AUDIT_")
    
    verification_timeout_seconds: float = Field(30.0, gt=0, description="Timeout for each role assignment lookup")
    verification_concurrency: int = Field(5, ge=1, description="Parallel role assignment lookups")
    required_labels: Annotated[List[str], NoDecode] = Field(
        default_factory=list, description="Comma-separated label keys every tagged resource must carry"
    )

    @field_validator('required_labels', mode='before')
    @classmethod
    def split_required_labels(cls, v):
        if isinstance(v, str):
            return [label.strip() for label in v.split(',') if label.strip()]
        return v


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    debug: bool = Field(False, description="Debug mode")
    log_level: LogLevel = Field(LogLevel.WARNING, description="Log level")
    log_config_path: Optional[str] = Field(None, description="YAML logging dictConfig file")
    
    azure: AzureSettings = Field(default_factory=lambda: AzureSettings())
    kubernetes: KubernetesSettings = Field(default_factory=lambda: KubernetesSettings())
    audit: AuditSettings = Field(default_factory=lambda: AuditSettings())

    @field_validator('log_level', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @classmethod
    def create_from_env(cls) -> "Settings":
        """Create settings instance from environment variables."""
        return cls()
