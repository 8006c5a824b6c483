"""Finding models produced by the rule evaluation engine."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from enum import Enum

from .inventory import ResourceRef


class Category(str, Enum):
    """Rule categories, declared in report order."""
    DEVELOPMENT = "Development"
    IMAGE_MANAGEMENT = "Image Management"
    CLUSTER_SETUP = "Cluster Setup"
    DISASTER_RECOVERY = "Disaster Recovery"

    @property
    def order(self) -> int:
        return list(Category).index(self)


class Severity(str, Enum):
    INFO = "Info"
    WARNING = "Warning"
    CRITICAL = "Critical"


class Finding(BaseModel):
    """One reported posture violation.

    A finding without a scope applies to the whole cluster.
    """

    model_config = ConfigDict(frozen=True)

    category: Category
    rule_id: str = Field(..., description="Stable identifier of the emitting rule")
    severity: Severity
    scope: Optional[ResourceRef] = Field(None, description="Offending object; None means cluster-wide")
    message: str
    remediation: str = ""

    @property
    def is_cluster_wide(self) -> bool:
        return self.scope is None

    @property
    def scope_label(self) -> str:
        if self.scope is None:
            return "cluster"
        return f"{self.scope.kind.value} {self.scope}"
