"""Cluster setup best practices: API server access, AAD, autoscaling, dashboard and node pools."""

from typing import List

from akshealth.core.utils import summarize_names
from akshealth.engine.rule import Rule
from akshealth.models import AuditConfiguration, Category, Finding, ResourceInventory, Severity
from .common import pod_matches

DASHBOARD_SIGNATURE = "kubernetes-dashboard"


class AuthorizedIpRangesRule(Rule):
    rule_id = "cluster-setup.authorized-ip-ranges"
    title = "Authorized IP ranges"
    category = Category.CLUSTER_SETUP
    severity = Severity.CRITICAL
    remediation = "Restrict API server access with `az aks update --api-server-authorized-ip-ranges`."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        cluster = inventory.cluster
        # A private cluster has no public API server endpoint to restrict
        if cluster.authorized_ip_ranges or cluster.private_cluster_enabled:
            return []
        return [self.finding("API server is publicly reachable with no authorized IP ranges configured")]


class ManagedAadIntegrationRule(Rule):
    rule_id = "cluster-setup.managed-aad"
    title = "Managed AAD integration"
    category = Category.CLUSTER_SETUP
    severity = Severity.WARNING
    remediation = "Enable AKS-managed Azure AD integration with `az aks update --enable-aad`."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        cluster = inventory.cluster
        if cluster.aad_managed:
            return []
        if cluster.aad_enabled:
            return [self.finding("Cluster uses legacy (non-managed) Azure AD integration")]
        return [self.finding("Cluster does not use Azure AD integrated RBAC")]


class AutoscaleRule(Rule):
    rule_id = "cluster-setup.autoscale"
    title = "Cluster autoscaler"
    category = Category.CLUSTER_SETUP
    severity = Severity.WARNING
    remediation = "Enable the cluster autoscaler on node pools with `az aks nodepool update --enable-cluster-autoscaler`."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        pools = inventory.cluster.node_pools
        if any(pool.enable_auto_scaling for pool in pools):
            return []
        return [self.finding(
            f"No node pool has the cluster autoscaler enabled: {summarize_names(p.name for p in pools) or 'none'}"
        )]


class KubernetesDashboardRule(Rule):
    rule_id = "cluster-setup.kubernetes-dashboard"
    title = "Kubernetes dashboard"
    category = Category.CLUSTER_SETUP
    severity = Severity.WARNING
    remediation = "Remove the Kubernetes dashboard and use the Azure portal resource view instead."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        dashboards = [
            str(pod.ref) for pod in inventory.pods
            if pod_matches(pod, name_fragments=(DASHBOARD_SIGNATURE,), label_values=(DASHBOARD_SIGNATURE,))
        ]
        if not dashboards:
            return []
        return [self.finding(f"Kubernetes dashboard is running: {summarize_names(dashboards)}")]


class MultipleNodePoolsRule(Rule):
    rule_id = "cluster-setup.multiple-node-pools"
    title = "Multiple node pools"
    category = Category.CLUSTER_SETUP
    severity = Severity.INFO
    remediation = "Add a user node pool so application workloads are isolated from system pods."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        if len(inventory.cluster.node_pools) > 1:
            return []
        return [self.finding("Cluster has a single node pool")]
