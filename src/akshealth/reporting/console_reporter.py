"""Console and JSON rendering of findings."""

import json
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence

import click

from akshealth.models import Category, Finding, Severity

SEVERITY_COLORS = {
    Severity.INFO: "blue",
    Severity.WARNING: "yellow",
    Severity.CRITICAL: "red",
}


def _banner(title: str) -> str:
    return click.style(f"{' ' * 15}{title}{' ' * 15}", fg="black", bg="white")


class ConsoleReporter:
    """Prints findings grouped by category in report order."""

    def __init__(self, echo: Optional[Callable[[str], None]] = None):
        self.echo = echo or click.echo

    def render(self, findings: Sequence[Finding]) -> None:
        grouped: Dict[Category, List[Finding]] = {category: [] for category in Category}
        for finding in findings:
            grouped[finding.category].append(finding)

        for category in sorted(grouped, key=lambda c: c.order):
            self.echo("")
            self.echo(_banner(f"Scanning {category.value} Items"))
            items = grouped[category]
            if not items:
                self.echo(click.style("No issues found", fg="green"))
                continue
            for finding in items:
                self.echo(self.format_finding(finding))

        self.echo("")
        self.echo(self.format_summary(findings))

    def format_finding(self, finding: Finding) -> str:
        severity = click.style(f"[{finding.severity.value.upper()}]",
                               fg=SEVERITY_COLORS[finding.severity], bold=True)
        line = f"{severity} {finding.rule_id} ({finding.scope_label}): {finding.message}"
        if finding.remediation:
            line += f"\n    -> {finding.remediation}"
        return line

    def format_summary(self, findings: Sequence[Finding]) -> str:
        counts = Counter(finding.severity for finding in findings)
        parts = [
            click.style(f"{counts.get(severity, 0)} {severity.value.lower()}",
                        fg=SEVERITY_COLORS[severity])
            for severity in (Severity.CRITICAL, Severity.WARNING, Severity.INFO)
        ]
        return f"{len(findings)} findings: " + ", ".join(parts)


def findings_to_json(findings: Sequence[Finding], indent: int = 2) -> str:
    """Serialize findings in report order."""
    return json.dumps([finding.model_dump(mode="json") for finding in findings], indent=indent)
