# src/akshealth/discovery/inventory_builder.py
"""Builds the resource inventory for one audit run."""

from typing import Dict, Any, Optional
import structlog
from datetime import datetime, timezone

from akshealth.clients.azure.authorization_client import AzureRoleAssignmentVerifier
from akshealth.clients.azure.client_factory import AzureClientFactory
from akshealth.clients.kubernetes.client_factory import KubernetesClientFactory
from akshealth.clients.kubernetes.k8s_client import KubernetesClient
from akshealth.core.exceptions import DiscoveryException, HealthCheckException
from akshealth.mappers.inventory_mapper import InventoryMapper
from akshealth.models import AuditConfiguration, ResourceInventory

logger = structlog.get_logger(__name__)


class InventoryBuilder:
    """
    Coordinates the Azure and Kubernetes clients to produce a ResourceInventory.

    Usage:
        async with InventoryBuilder(config) as builder:
            inventory = await builder.build(configuration)
            verifier = builder.verifier

    Any failure here is a setup failure and aborts the run before evaluation.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.azure_config = config.get("azure", {})
        self.k8s_config = config.get("kubernetes", {})
        self.audit_config = config.get("audit", {})

        self.azure_factory: Optional[AzureClientFactory] = None
        self.k8s_factory = KubernetesClientFactory(self.k8s_config)
        self.k8s_client: Optional[KubernetesClient] = None
        self.azure_clients: Dict[str, Any] = {}
        self.mapper = InventoryMapper()

        self.logger = logger.bind(builder="inventory")

    async def initialize(self) -> None:
        """Create and connect the Azure clients."""
        try:
            self.azure_factory = AzureClientFactory(self.azure_config)
            self.azure_clients = await self.azure_factory.create_all_clients()
        except HealthCheckException:
            raise
        except Exception as e:
            self.logger.error("Failed to initialize inventory builder", error=str(e))
            raise DiscoveryException("InventoryBuilder", f"Initialization failed: {e}")

    @property
    def verifier(self) -> AzureRoleAssignmentVerifier:
        """Role assignment verifier backed by the connected authorization client."""
        if "authorization" not in self.azure_clients:
            raise DiscoveryException("InventoryBuilder", "Builder not initialized")
        return AzureRoleAssignmentVerifier(
            self.azure_clients["authorization"],
            request_timeout=self.audit_config.get("verification_timeout_seconds")
        )

    async def build(self, configuration: AuditConfiguration) -> ResourceInventory:
        """Fetch cluster and cloud state and map it into an inventory."""
        if not self.azure_clients:
            raise DiscoveryException("InventoryBuilder", "Builder not initialized")

        start_time = datetime.now(timezone.utc)
        rg, name = configuration.resource_group, configuration.cluster_name
        self.logger.info("Fetching cluster information", resource_group=rg, cluster=name)
        cluster = await self.azure_clients["aks"].get_cluster(rg, name)

        registries = []
        if configuration.registry_names:
            self.logger.info("Fetching Azure Container Registry information")
            registries = await self.azure_clients["registry"].list_registries()

        self.k8s_client = await self._connect_kubernetes(rg, name)

        self.logger.info("Fetching Kubernetes resources")
        kubernetes = await self.k8s_client.list_all_resources()

        constraint_templates = None
        if await self.k8s_client.has_constraint_templates():
            self.logger.info("Fetching constraint templates")
            constraint_templates = await self.k8s_client.list_constraint_templates()

        inventory = self.mapper.map_inventory(
            cluster=cluster,
            kubernetes=kubernetes,
            registries=registries,
            registry_names=configuration.registry_names,
            constraint_templates=constraint_templates,
        )

        missing = {n.lower() for n in configuration.registry_names} - {
            r.name.lower() for r in inventory.container_registries
        }
        if missing:
            self.logger.warning("Configured registries were not found", registries=sorted(missing))

        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        self.logger.info("Inventory built", duration_seconds=duration)
        return inventory

    async def _connect_kubernetes(self, resource_group: str, cluster_name: str) -> KubernetesClient:
        if self.k8s_config.get("kubeconfig_path"):
            k8s_client = self.k8s_factory.create_client(cluster_name=cluster_name)
        else:
            self.logger.info("Refreshing kubernetes credentials")
            kubeconfig = await self.azure_clients["aks"].get_cluster_credentials(
                cluster_name, resource_group, admin=self.k8s_config.get("use_admin_credentials", True)
            )
            k8s_client = self.k8s_factory.create_client_from_cluster_credentials(kubeconfig, cluster_name)
        await k8s_client.connect()
        return k8s_client

    async def cleanup(self) -> None:
        if self.k8s_client:
            await self.k8s_client.disconnect()
            self.k8s_client = None
        if self.azure_factory:
            await self.azure_factory.disconnect_all()
        self.azure_clients = {}

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()
