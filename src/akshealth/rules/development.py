"""Development best practices: probes, hooks, replicas, labels, autoscaling, identity and pod hygiene."""

from typing import Dict, List, Mapping, Sequence, Tuple

from akshealth.core.utils import summarize_names
from akshealth.models import (
    AuditConfiguration,
    Category,
    Container,
    Finding,
    NamespacedObject,
    Pod,
    ResourceInventory,
    ResourceKind,
    ResourceRef,
    Severity,
)
from akshealth.engine.rule import Rule
from .common import PodContainerRule, first_match

SECRETS_STORE_CSI_DRIVER = "secrets-store.csi.k8s.io"
AZURE_PROVIDER_SIGNATURE = "secrets-store-provider-azure"
SCALABLE_POD_OWNERS = ("statefulset", "replicaset")


class LivenessProbeRule(PodContainerRule):
    rule_id = "development.liveness-probes"
    title = "Liveness probes"
    category = Category.DEVELOPMENT
    severity = Severity.WARNING
    message_template = "Containers without a liveness probe: {containers}"
    remediation = "Add a livenessProbe so the kubelet restarts containers that stop responding."

    def violates(self, container: Container, pod: Pod) -> bool:
        return container.liveness_probe is None


class ReadinessProbeRule(PodContainerRule):
    rule_id = "development.readiness-probes"
    title = "Readiness probes"
    category = Category.DEVELOPMENT
    severity = Severity.WARNING
    message_template = "Containers without a readiness probe: {containers}"
    remediation = "Add a readinessProbe so traffic is only routed to containers that are ready."

    def violates(self, container: Container, pod: Pod) -> bool:
        return container.readiness_probe is None


class StartupProbeRule(PodContainerRule):
    rule_id = "development.startup-probes"
    title = "Startup probes"
    category = Category.DEVELOPMENT
    severity = Severity.INFO
    message_template = "Containers without a startup probe: {containers}"
    remediation = "Add a startupProbe for slow-starting containers instead of long liveness delays."

    def violates(self, container: Container, pod: Pod) -> bool:
        return container.startup_probe is None


class PreStopHookRule(PodContainerRule):
    rule_id = "development.pre-stop-hooks"
    title = "Pre-stop hooks"
    category = Category.DEVELOPMENT
    severity = Severity.INFO
    message_template = "Containers without a preStop lifecycle hook: {containers}"
    remediation = "Add a lifecycle.preStop hook so in-flight requests drain before shutdown."

    def violates(self, container: Container, pod: Pod) -> bool:
        return container.pre_stop_hook is None


class SingleReplicaRule(Rule):
    rule_id = "development.single-replicas"
    title = "Single replicas"
    category = Category.DEVELOPMENT
    severity = Severity.WARNING
    remediation = "Run at least two replicas so a single pod failure does not cause downtime."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        return [
            self.finding("Deployment runs a single replica", scope=deployment.ref)
            for deployment in inventory.deployments
            if deployment.replicas == 1
        ]


class ConsistentTaggingRule(Rule):
    """Checks the labelling convention across namespaces and common object kinds.

    Emits one cluster-wide finding per inconsistency class: a kind with unlabelled
    objects, or, when the tag policy names required labels, a (kind, label) pair
    with objects missing that label.
    """

    rule_id = "development.consistent-tagging"
    title = "Consistent tagging"
    category = Category.DEVELOPMENT
    severity = Severity.INFO
    remediation = "Apply a shared labelling convention (for example app.kubernetes.io/* labels) to all resources."

    def _collections(self, inventory: ResourceInventory) -> Sequence[Tuple[str, Sequence[Tuple[str, Mapping[str, str]]]]]:
        def describe(items: Sequence[NamespacedObject]):
            return [(str(item.ref), item.labels) for item in items]

        return (
            ("namespaces", [(ns.name, ns.labels) for ns in inventory.namespaces]),
            ("pods", describe(inventory.pods)),
            ("deployments", describe(inventory.deployments)),
            ("services", describe(inventory.services)),
            ("config maps", describe(inventory.config_maps)),
            ("secrets", describe(inventory.secrets)),
        )

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        required = sorted(configuration.tag_policy.required_labels)
        findings = []

        for kind, items in self._collections(inventory):
            if not items:
                continue

            if not required:
                unlabelled = [name for name, labels in items if not labels]
                if unlabelled:
                    findings.append(self.finding(
                        f"{len(unlabelled)} of {len(items)} {kind} have no labels: "
                        f"{summarize_names(unlabelled)}"
                    ))
                continue

            for label in required:
                missing = [name for name, labels in items if label not in labels]
                if missing:
                    findings.append(self.finding(
                        f"{len(missing)} of {len(items)} {kind} are missing label '{label}': "
                        f"{summarize_names(missing)}"
                    ))

        return findings


class HorizontalPodAutoscalerRule(Rule):
    """Lists scalable workloads that no HorizontalPodAutoscaler targets, per namespace.

    Deployments are read directly. Other pod controllers an HPA can scale
    (StatefulSets, ReplicaSets not managed by a Deployment) are found through
    the owners of running pods. Bare pods, DaemonSets and Jobs cannot be
    autoscaled and are not reported.
    """

    rule_id = "development.hpa-coverage"
    title = "Horizontal pod autoscalers"
    category = Category.DEVELOPMENT
    severity = Severity.INFO
    remediation = "Create a HorizontalPodAutoscaler for workloads that serve variable load."

    def _workloads(self, inventory: ResourceInventory) -> List[Tuple[str, str, str]]:
        workloads = [(d.namespace, "deployment", d.name) for d in inventory.deployments]
        seen = set(workloads)

        for pod in inventory.pods:
            kind = (pod.owner_kind or "").lower()
            if kind not in SCALABLE_POD_OWNERS or not pod.owner_name:
                continue
            if kind == "replicaset" and any(
                d.namespace == pod.namespace and pod.owner_name.startswith(f"{d.name}-")
                for d in inventory.deployments
            ):
                continue
            workload = (pod.namespace, kind, pod.owner_name)
            if workload not in seen:
                seen.add(workload)
                workloads.append(workload)
        return workloads

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        targets = {
            (hpa.namespace, (hpa.target_kind or "").lower(), hpa.target_name)
            for hpa in inventory.horizontal_pod_autoscalers
        }

        uncovered: Dict[str, List[str]] = {}
        for namespace, kind, name in self._workloads(inventory):
            if (namespace, kind, name) not in targets:
                uncovered.setdefault(namespace, []).append(f"{kind}/{name}")

        return [
            self.finding(
                f"Workloads without a HorizontalPodAutoscaler: {summarize_names(names)}",
                scope=ResourceRef(kind=ResourceKind.NAMESPACE, name=namespace)
            )
            for namespace, names in uncovered.items()
        ]


class SecretsStoreProviderRule(Rule):
    rule_id = "development.secrets-store-csi"
    title = "Azure Key Vault secrets store provider"
    category = Category.DEVELOPMENT
    severity = Severity.INFO
    remediation = ("Enable the azure-keyvault-secrets-provider add-on and mount secrets through "
                   "a SecretProviderClass instead of Kubernetes secrets.")

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        # The add-on runs its provider in kube-system, which is often ignored
        if inventory.cluster.secrets_store_addon_enabled:
            return []
        if first_match(inventory.pods, name_fragments=(AZURE_PROVIDER_SIGNATURE,)):
            return []
        uses_csi = any(
            volume.csi_driver == SECRETS_STORE_CSI_DRIVER
            for pod in inventory.pods for volume in pod.volumes
        )
        if uses_csi:
            return []
        return [self.finding("No pod uses the Azure Key Vault provider for the Secrets Store CSI driver")]


class ManagedPodIdentityRule(Rule):
    rule_id = "development.managed-pod-identity"
    title = "Workload identity"
    category = Category.DEVELOPMENT
    severity = Severity.WARNING
    remediation = "Enable the OIDC issuer and workload identity, then migrate off AAD pod-managed identity."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        cluster = inventory.cluster
        if cluster.workload_identity_enabled:
            return []
        if cluster.pod_identity_enabled:
            return [self.finding("Cluster uses the deprecated AAD pod-managed identity instead of workload identity")]
        return [self.finding(
            "Cluster has neither workload identity nor pod-managed identity enabled",
            severity=Severity.INFO
        )]


class DefaultNamespaceRule(Rule):
    rule_id = "development.default-namespace"
    title = "Pods in the default namespace"
    category = Category.DEVELOPMENT
    severity = Severity.WARNING
    remediation = "Deploy workloads into dedicated namespaces."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        return [
            self.finding("Pod runs in the default namespace", scope=pod.ref)
            for pod in inventory.pods
            if pod.namespace == "default"
        ]


class RequestsAndLimitsRule(Rule):
    rule_id = "development.requests-limits"
    title = "Resource requests and limits"
    category = Category.DEVELOPMENT
    severity = Severity.WARNING
    remediation = "Set CPU and memory requests and limits on every container."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        findings = []
        for pod in inventory.pods:
            details = [
                f"{container.name} ({', '.join(container.resources.missing)})"
                for container in pod.containers
                if container.resources.missing
            ]
            if details:
                findings.append(self.finding(
                    f"Containers missing requests or limits: {'; '.join(details)}",
                    scope=pod.ref
                ))
        return findings


class DefaultSecurityContextRule(PodContainerRule):
    rule_id = "development.default-security-context"
    title = "Default security context"
    category = Category.DEVELOPMENT
    severity = Severity.WARNING
    message_template = "Containers running with the default security context: {containers}"
    remediation = ("Set runAsNonRoot, readOnlyRootFilesystem and allowPrivilegeEscalation: false "
                   "in the pod or container securityContext.")

    def violates(self, container: Container, pod: Pod) -> bool:
        if pod.security_context is not None and pod.security_context.is_hardened:
            return False
        return container.security_context is None or not container.security_context.is_hardened
