"""Image management best practices: admission policies, registry access and runtime security."""

import asyncio
from typing import List, Sequence

from akshealth.core.utils import gather_with_concurrency
from akshealth.engine.rule import Rule
from akshealth.engine.verification import RoleAssignmentStatus, RoleAssignmentVerifier
from akshealth.models import (
    AuditConfiguration,
    Category,
    ConstraintTemplate,
    ContainerRegistry,
    Finding,
    OptionalResource,
    ResourceInventory,
    Severity,
)
from .common import first_match

# Gatekeeper library and Azure Policy template kinds, lower-cased
ALLOWED_IMAGES_SIGNATURES = ("allowedrepos", "allowedimages", "allowedregistries")
PRIVILEGED_SIGNATURES = ("privilegedcontainer", "noprivilege")
PRIVILEGED_EXCLUDED = ("escalation",)

RUNTIME_AGENT_NAMES = (
    "microsoft-defender",
    "falco",
    "twistlock",
    "aqua-enforcer",
    "neuvector",
    "sysdig-agent",
)
RUNTIME_ANNOTATION_PREFIXES = (
    "aquasec.com/",
    "twistlock.com/",
    "prismacloud.io/",
    "neuvector.com/",
    "sysdig.com/",
)


def _template_matches(template: ConstraintTemplate, signatures: Sequence[str],
                      excluded: Sequence[str] = ()) -> bool:
    identifiers = " ".join(filter(None, (template.name, template.constraint_kind))).lower()
    if any(word in identifiers for word in excluded):
        return False
    return any(signature in identifiers for signature in signatures)


class AllowedImagesPolicyRule(Rule):
    rule_id = "image-management.allowed-images"
    title = "Allowed images policy"
    category = Category.IMAGE_MANAGEMENT
    severity = Severity.WARNING
    required_resources = frozenset({OptionalResource.CONSTRAINT_TEMPLATES})
    remediation = "Assign a Gatekeeper or Azure Policy constraint that restricts images to trusted registries."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        templates = inventory.constraint_templates or ()
        if any(_template_matches(t, ALLOWED_IMAGES_SIGNATURES) for t in templates):
            return []
        return [self.finding("No constraint template restricts which image sources are allowed")]


class PrivilegedContainerPolicyRule(Rule):
    rule_id = "image-management.no-privileged-containers"
    title = "Privileged container policy"
    category = Category.IMAGE_MANAGEMENT
    severity = Severity.WARNING
    required_resources = frozenset({OptionalResource.CONSTRAINT_TEMPLATES})
    remediation = "Assign a Gatekeeper or Azure Policy constraint that denies privileged containers."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        templates = inventory.constraint_templates or ()
        if any(_template_matches(t, PRIVILEGED_SIGNATURES, PRIVILEGED_EXCLUDED) for t in templates):
            return []
        return [self.finding("No constraint template denies privileged containers")]


class AcrRbacIntegrationRule(Rule):
    """Verifies the kubelet identity holds AcrPull on every referenced registry.

    Performs one verification call per registry, in parallel up to the configured
    concurrency, each bounded by the configured timeout. Findings are ordered by
    registry name regardless of completion order.
    """

    rule_id = "image-management.acr-rbac"
    title = "ACR RBAC integration"
    category = Category.IMAGE_MANAGEMENT
    severity = Severity.CRITICAL
    remediation = "Run `az aks update --attach-acr <registry>` to grant the kubelet identity AcrPull."

    def __init__(self, verifier: RoleAssignmentVerifier):
        super().__init__()
        self.verifier = verifier

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        registries = sorted(inventory.container_registries, key=lambda r: r.name.lower())
        if not registries:
            return []

        principal_id = inventory.cluster.kubelet_identity_object_id
        if not principal_id:
            return [
                self.finding(
                    "Cluster has no kubelet managed identity; AcrPull access cannot be confirmed",
                    scope=registry.ref,
                    severity=Severity.WARNING
                )
                for registry in registries
            ]

        statuses = await gather_with_concurrency(
            [self._verify(registry, principal_id, configuration.verification_timeout_seconds)
             for registry in registries],
            max_concurrency=configuration.verification_concurrency
        )

        findings = []
        for registry, status in zip(registries, statuses):
            if isinstance(status, BaseException):
                status = RoleAssignmentStatus.INDETERMINATE
            if status == RoleAssignmentStatus.ABSENT:
                findings.append(self.finding(
                    "Cluster managed identity has no AcrPull role assignment on the registry",
                    scope=registry.ref
                ))
            elif status == RoleAssignmentStatus.INDETERMINATE:
                findings.append(self.finding(
                    "AcrPull role assignment could not be verified; RBAC status is indeterminate",
                    scope=registry.ref,
                    severity=Severity.WARNING,
                    remediation="Check Azure connectivity and permissions to read role assignments, then re-run."
                ))
        return findings

    async def _verify(self, registry: ContainerRegistry, principal_id: str,
                      timeout: float) -> RoleAssignmentStatus:
        try:
            return await asyncio.wait_for(self.verifier.verify(registry, principal_id), timeout=timeout)
        except asyncio.TimeoutError:
            self.logger.warning("Role assignment verification timed out",
                                registry=registry.name, timeout_seconds=timeout)
        except Exception as e:
            self.logger.warning("Role assignment verification failed",
                                registry=registry.name, error=str(e))
        return RoleAssignmentStatus.INDETERMINATE


class RegistryPrivateEndpointRule(Rule):
    rule_id = "image-management.registry-private-endpoints"
    title = "Private endpoints on registries"
    category = Category.IMAGE_MANAGEMENT
    severity = Severity.WARNING
    remediation = "Add a private endpoint to the registry (Premium SKU) and disable public network access."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        findings = []
        for registry in sorted(inventory.container_registries, key=lambda r: r.name.lower()):
            if registry.private_endpoint_connections or registry.is_network_restricted:
                continue
            message = "Registry has no private endpoint and allows public network access"
            if (registry.sku or "").lower() != "premium":
                message += f" (SKU {registry.sku or 'unknown'} does not support private endpoints)"
            findings.append(self.finding(message, scope=registry.ref))
        return findings


class RuntimeContainerSecurityRule(Rule):
    """Flags pods with no runtime security coverage.

    A pod is covered when a runtime security agent runs in the cluster, when
    Microsoft Defender is enabled on the cluster, or when the pod itself carries
    a security vendor annotation or sidecar.
    """

    rule_id = "image-management.runtime-security"
    title = "Runtime container security"
    category = Category.IMAGE_MANAGEMENT
    severity = Severity.WARNING
    remediation = "Enable Microsoft Defender for Containers or deploy a runtime security agent."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        if inventory.cluster.defender_enabled:
            return []
        if first_match(inventory.pods, name_fragments=RUNTIME_AGENT_NAMES):
            return []

        findings = []
        for pod in inventory.pods:
            annotated = any(
                key.startswith(RUNTIME_ANNOTATION_PREFIXES) for key in pod.annotations
            )
            sidecar = any(
                any(agent in (container.image or "").lower() for agent in RUNTIME_AGENT_NAMES)
                for container in pod.containers
            )
            if not (annotated or sidecar):
                findings.append(self.finding("Pod has no runtime container security coverage", scope=pod.ref))
        return findings
