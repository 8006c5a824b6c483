# src/akshealth/engine/evaluation_engine.py
"""Runs every registered rule against one inventory snapshot."""

from typing import List
import structlog

from akshealth.models import AuditConfiguration, Finding, ResourceInventory, Severity
from .namespace_filter import filter_namespaces
from .registry import RuleRegistry
from .rule import Rule

logger = structlog.get_logger(__name__)


class EvaluationEngine:
    """
    Evaluates the rule registry in order and collects findings.

    The namespace filter is applied once per run. A rule whose required optional
    resources are missing is skipped silently. A rule that raises is reported as
    a single degraded finding and never stops the rules after it.
    """

    def __init__(self, registry: RuleRegistry):
        self.registry = registry
        self.logger = logger.bind(engine="evaluation")

    async def run(self, inventory: ResourceInventory,
                  configuration: AuditConfiguration) -> List[Finding]:
        """Evaluate all rules and return the ordered findings."""
        filtered = filter_namespaces(inventory, configuration.ignore_namespaces)
        available = filtered.available_resources

        findings: List[Finding] = []
        skipped = 0
        failed = 0

        for rule in self.registry:
            missing = rule.required_resources - available
            if missing:
                skipped += 1
                self.logger.debug(
                    f"Skipping {rule.rule_id}",
                    missing=sorted(resource.value for resource in missing)
                )
                continue

            try:
                results = await rule.evaluate(filtered, configuration)
            except Exception as e:
                failed += 1
                self.logger.error(f"Rule {rule.rule_id} failed", error=str(e), exc_info=True)
                findings.append(self._degraded_finding(rule, e))
                continue

            self.logger.debug(f"Evaluated {rule.rule_id}", findings=len(results))
            findings.extend(results)

        self.logger.info(
            "Evaluation completed",
            rules=len(self.registry),
            skipped=skipped,
            failed=failed,
            findings=len(findings)
        )
        return findings

    def _degraded_finding(self, rule: Rule, error: Exception) -> Finding:
        return rule.finding(
            f"{rule.title or rule.rule_id} could not be evaluated: {error}",
            severity=Severity.WARNING,
            remediation="Re-run the health check with --debug and inspect the log output.",
        )
