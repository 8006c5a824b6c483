"""Run configuration consumed by the evaluation engine."""

from pydantic import BaseModel, ConfigDict, Field
from typing import FrozenSet, Iterable, Optional

from akshealth.core.utils import split_csv


class TagPolicy(BaseModel):
    """Labelling convention checked by the tagging rule.

    With no required labels, every object is expected to carry at least one label.
    """

    model_config = ConfigDict(frozen=True)

    required_labels: FrozenSet[str] = frozenset()


class AuditConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True)

    resource_group: str
    cluster_name: str
    registry_names: FrozenSet[str] = frozenset()
    ignore_namespaces: FrozenSet[str] = frozenset()
    tag_policy: TagPolicy = Field(default_factory=TagPolicy)
    verification_timeout_seconds: float = Field(30.0, gt=0)
    verification_concurrency: int = Field(5, ge=1)

    @classmethod
    def from_cli(
        cls,
        resource_group: str,
        cluster_name: str,
        image_registries: Optional[str] = None,
        ignore_namespaces: Optional[str] = None,
        required_labels: Optional[Iterable[str]] = None,
        **kwargs
    ) -> "AuditConfiguration":
        """Build the configuration from comma-separated command line values."""
        return cls(
            resource_group=resource_group,
            cluster_name=cluster_name,
            registry_names=split_csv(image_registries),
            ignore_namespaces=split_csv(ignore_namespaces),
            tag_policy=TagPolicy(required_labels=frozenset(required_labels or ())),
            **kwargs
        )
