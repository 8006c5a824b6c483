"""Tests for console and JSON rendering."""

import json

import click

from akshealth.models import Category, Finding, ResourceKind, ResourceRef, Severity
from akshealth.reporting import ConsoleReporter, findings_to_json


def _finding(category=Category.DEVELOPMENT, severity=Severity.WARNING, scope=None, message="msg"):
    return Finding(category=category, rule_id="test.rule", severity=severity, scope=scope,
                   message=message, remediation="fix it")


class Capture:
    def __init__(self):
        self.lines = []

    def __call__(self, line: str = ""):
        self.lines.append(click.unstyle(line))

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


def test_every_category_gets_a_section():
    capture = Capture()
    ConsoleReporter(echo=capture).render([])

    headings = [line.strip() for line in capture.lines if line.strip().startswith("Scanning")]
    assert headings == [
        "Scanning Development Items",
        "Scanning Image Management Items",
        "Scanning Cluster Setup Items",
        "Scanning Disaster Recovery Items",
    ]
    assert capture.text.count("No issues found") == 4
    assert "0 findings" in capture.lines[-1]


def test_findings_rendered_under_their_category():
    capture = Capture()
    pod = ResourceRef(kind=ResourceKind.POD, namespace="app", name="web-1")
    ConsoleReporter(echo=capture).render([
        _finding(scope=pod, message="no probe"),
        _finding(Category.CLUSTER_SETUP, Severity.CRITICAL, message="public api"),
    ])

    text = capture.text
    assert text.index("no probe") < text.index("Scanning Image Management Items")
    assert text.index("public api") > text.index("Scanning Cluster Setup Items")
    assert "[WARNING] test.rule (Pod app/web-1): no probe" in text
    assert "[CRITICAL] test.rule (cluster): public api" in text
    assert "-> fix it" in text
    assert capture.lines[-1] == "2 findings: 1 critical, 1 warning, 0 info"


def test_findings_to_json():
    scope = ResourceRef(kind=ResourceKind.CONTAINER_REGISTRY, name="myacr")
    payload = json.loads(findings_to_json([_finding(Category.IMAGE_MANAGEMENT, scope=scope), _finding()]))

    assert payload[0]["category"] == "Image Management"
    assert payload[0]["scope"] == {"kind": "ContainerRegistry", "namespace": None, "name": "myacr"}
    assert payload[1]["scope"] is None
    assert payload[1]["severity"] == "Warning"
