"""Disaster recovery best practices."""

from typing import List

from akshealth.core.utils import summarize_names
from akshealth.engine.rule import Rule
from akshealth.models import AuditConfiguration, Category, Finding, ResourceInventory, Severity
from .common import first_match

PAID_SLA_TIERS = ("paid", "standard", "premium")
VELERO_SIGNATURE = "velero"


class AvailabilityZonesRule(Rule):
    rule_id = "disaster-recovery.availability-zones"
    title = "Availability zones"
    category = Category.DISASTER_RECOVERY
    severity = Severity.WARNING
    remediation = "Create node pools spread across at least two availability zones."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        pools = inventory.cluster.node_pools
        single_zone = [pool.name for pool in pools if len(pool.availability_zones) < 2]
        if pools and not single_zone:
            return []
        if not pools:
            return [self.finding("Cluster reports no node pools; zone redundancy cannot be established")]
        return [self.finding(f"Node pools are not zone-redundant: {summarize_names(single_zone)}")]


class ControlPlaneSlaRule(Rule):
    rule_id = "disaster-recovery.control-plane-sla"
    title = "Control plane SLA"
    category = Category.DISASTER_RECOVERY
    severity = Severity.WARNING
    remediation = "Move the cluster to the Standard tier with `az aks update --tier standard`."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        tier = inventory.cluster.sku_tier
        if (tier or "").lower() in PAID_SLA_TIERS:
            return []
        return [self.finding(f"Cluster uses the {tier or 'Free'} tier without a financially backed uptime SLA")]


class VeleroRule(Rule):
    rule_id = "disaster-recovery.velero"
    title = "Velero backups"
    category = Category.DISASTER_RECOVERY
    severity = Severity.WARNING
    remediation = "Install Velero (or AKS Backup) to back up cluster state and persistent volumes."

    async def evaluate(self, inventory: ResourceInventory,
                       configuration: AuditConfiguration) -> List[Finding]:
        if first_match(inventory.pods, name_fragments=(VELERO_SIGNATURE,), label_values=(VELERO_SIGNATURE,)):
            return []
        return [self.finding("No Velero backup agent is running in the cluster")]
