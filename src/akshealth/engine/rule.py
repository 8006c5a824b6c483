"""Base rule interface."""

from abc import ABC, abstractmethod
from typing import FrozenSet, List, Optional
import structlog

from akshealth.models import (
    AuditConfiguration,
    Category,
    Finding,
    OptionalResource,
    ResourceInventory,
    ResourceRef,
    Severity,
)

logger = structlog.get_logger(__name__)


class Rule(ABC):
    """A best-practice check over the filtered inventory.

    `evaluate` must not mutate the inventory or perform I/O, except for rules that
    are handed an injected verification capability. Rules that need an optional
    resource list it in `required_resources`; the engine skips them when it is absent.
    """

    rule_id: str = ""
    title: str = ""
    category: Category
    severity: Severity = Severity.WARNING
    remediation: str = ""
    required_resources: FrozenSet[OptionalResource] = frozenset()

    def __init__(self):
        self.logger = logger.bind(rule=self.rule_id)

    @abstractmethod
    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        """Return the findings for this rule, in a deterministic order."""
        pass

    def finding(self, message: str, scope: Optional[ResourceRef] = None,
                severity: Optional[Severity] = None,
                remediation: Optional[str] = None) -> Finding:
        """Build a finding attributed to this rule."""
        return Finding(
            category=self.category,
            rule_id=self.rule_id,
            severity=severity or self.severity,
            scope=scope,
            message=message,
            remediation=self.remediation if remediation is None else remediation,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.rule_id}>"
