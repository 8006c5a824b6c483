"""
Inventory mapping
Normalizes raw Kubernetes and Azure payloads into the typed, read-only inventory
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar
import structlog
from pydantic import ValidationError

from akshealth.core.exceptions import DataValidationException
from akshealth.core.utils import equals_ignore_case, safe_get
from akshealth.models import (
    ClusterDetails,
    ConfigMap,
    ConstraintTemplate,
    Container,
    ContainerRegistry,
    Deployment,
    HorizontalPodAutoscaler,
    LifecycleHook,
    Namespace,
    NodePool,
    Pod,
    PodVolume,
    Probe,
    ResourceInventory,
    ResourceRequirements,
    Secret,
    SecurityContext,
    Service,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

PROBE_HANDLERS = ("httpGet", "exec", "tcpSocket", "grpc")
LIFECYCLE_HANDLERS = ("exec", "httpGet", "tcpSocket", "sleep")


def _pick(raw: Optional[Dict[str, Any]], *keys: str, default: Any = None) -> Any:
    """Return the first present key; Azure SDK dicts are snake_case, `az` CLI output is camelCase."""
    for key in keys:
        value = safe_get(raw, key)
        if value is not None:
            return value
    return default


def _handler(raw: Optional[Dict[str, Any]], handlers: Tuple[str, ...]) -> Optional[str]:
    if not raw:
        return None
    return next((h for h in handlers if raw.get(h)), "unknown")


class InventoryMapper:
    """Maps raw fetch results to inventory models.

    Kubernetes objects are expected in API (camelCase) shape. Items that cannot
    be normalized are logged and dropped so one malformed object never hides the
    others.
    """

    def __init__(self):
        self.logger = logger.bind(component="inventory_mapper")

    def map_inventory(
        self,
        cluster: Dict[str, Any],
        kubernetes: Dict[str, List[Dict[str, Any]]],
        registries: Iterable[Dict[str, Any]] = (),
        registry_names: Iterable[str] = (),
        constraint_templates: Optional[List[Dict[str, Any]]] = None,
    ) -> ResourceInventory:
        """Build the inventory from one snapshot of raw payloads."""
        registry_names = list(registry_names)
        wanted_registries = [
            r for r in registries
            if any(equals_ignore_case(name, r.get("name")) for name in registry_names)
        ]

        inventory = ResourceInventory(
            cluster=self.map_cluster(cluster),
            namespaces=self._map_all(kubernetes.get("namespaces", []), self.map_namespace, "namespace"),
            pods=self._map_all(kubernetes.get("pods", []), self.map_pod, "pod"),
            deployments=self._map_all(kubernetes.get("deployments", []), self.map_deployment, "deployment"),
            services=self._map_all(kubernetes.get("services", []), self.map_service, "service"),
            config_maps=self._map_all(kubernetes.get("config_maps", []), self.map_config_map, "configmap"),
            secrets=self._map_all(kubernetes.get("secrets", []), self.map_secret, "secret"),
            horizontal_pod_autoscalers=self._map_all(
                kubernetes.get("horizontal_pod_autoscalers", []), self.map_hpa, "hpa"
            ),
            constraint_templates=(
                None if constraint_templates is None
                else self._map_all(constraint_templates, self.map_constraint_template, "constrainttemplate")
            ),
            container_registries=self._map_all(wanted_registries, self.map_registry, "registry"),
        )

        self.logger.info(
            "Inventory mapped",
            pods=len(inventory.pods),
            deployments=len(inventory.deployments),
            registries=len(inventory.container_registries),
            constraint_templates_installed=inventory.constraint_templates is not None
        )
        return inventory

    def _map_all(self, items: Iterable[Dict[str, Any]], mapper: Callable[[Dict[str, Any]], T],
                 kind: str) -> Tuple[T, ...]:
        mapped = []
        for raw in items:
            try:
                mapped.append(mapper(raw))
            except (DataValidationException, ValidationError) as e:
                self.logger.warning(f"Dropping malformed {kind}", error=str(e),
                                    name=safe_get(raw, "metadata.name") or safe_get(raw, "name"))
        return tuple(mapped)

    # Kubernetes objects

    def _metadata(self, raw: Dict[str, Any], namespaced: bool = True) -> Dict[str, Any]:
        name = safe_get(raw, "metadata.name")
        if not name:
            raise DataValidationException("metadata.name", name, "object has no name")
        metadata = {
            "name": name,
            "labels": safe_get(raw, "metadata.labels", {}),
            "annotations": safe_get(raw, "metadata.annotations", {}),
        }
        if namespaced:
            namespace = safe_get(raw, "metadata.namespace")
            if not namespace:
                raise DataValidationException("metadata.namespace", namespace, f"{name} has no namespace")
            metadata["namespace"] = namespace
        return metadata

    def map_namespace(self, raw: Dict[str, Any]) -> Namespace:
        return Namespace(**self._metadata(raw, namespaced=False))

    def map_pod(self, raw: Dict[str, Any]) -> Pod:
        owners = safe_get(raw, "metadata.ownerReferences", [])
        owner = next((o for o in owners if o.get("controller")), owners[0] if owners else {})
        return Pod(
            **self._metadata(raw),
            containers=tuple(self.map_container(c) for c in safe_get(raw, "spec.containers", [])),
            init_containers=tuple(self.map_container(c) for c in safe_get(raw, "spec.initContainers", [])),
            security_context=self.map_security_context(safe_get(raw, "spec.securityContext")),
            volumes=tuple(self.map_volume(v) for v in safe_get(raw, "spec.volumes", [])),
            owner_kind=owner.get("kind"),
            owner_name=owner.get("name"),
        )

    def map_container(self, raw: Dict[str, Any]) -> Container:
        def probe(key: str) -> Optional[Probe]:
            value = raw.get(key)
            if not value:
                return None
            return Probe(handler=_handler(value, PROBE_HANDLERS))

        pre_stop = safe_get(raw, "lifecycle.preStop")
        return Container(
            name=raw.get("name") or "unnamed",
            image=raw.get("image"),
            liveness_probe=probe("livenessProbe"),
            readiness_probe=probe("readinessProbe"),
            startup_probe=probe("startupProbe"),
            pre_stop_hook=LifecycleHook(handler=_handler(pre_stop, LIFECYCLE_HANDLERS)) if pre_stop else None,
            resources=ResourceRequirements(
                cpu_request=safe_get(raw, "resources.requests.cpu"),
                memory_request=safe_get(raw, "resources.requests.memory"),
                cpu_limit=safe_get(raw, "resources.limits.cpu"),
                memory_limit=safe_get(raw, "resources.limits.memory"),
            ),
            security_context=self.map_security_context(raw.get("securityContext")),
        )

    def map_security_context(self, raw: Optional[Dict[str, Any]]) -> Optional[SecurityContext]:
        if not raw:
            return None
        return SecurityContext(
            run_as_non_root=raw.get("runAsNonRoot"),
            run_as_user=raw.get("runAsUser"),
            read_only_root_filesystem=raw.get("readOnlyRootFilesystem"),
            allow_privilege_escalation=raw.get("allowPrivilegeEscalation"),
            privileged=raw.get("privileged"),
            dropped_capabilities=tuple(safe_get(raw, "capabilities.drop", [])),
            seccomp_profile=safe_get(raw, "seccompProfile.type"),
        )

    def map_volume(self, raw: Dict[str, Any]) -> PodVolume:
        return PodVolume(
            name=raw.get("name") or "unnamed",
            csi_driver=safe_get(raw, "csi.driver"),
            secret_provider_class=safe_get(raw, "csi.volumeAttributes.secretProviderClass"),
        )

    def map_deployment(self, raw: Dict[str, Any]) -> Deployment:
        return Deployment(**self._metadata(raw), replicas=safe_get(raw, "spec.replicas", 1))

    def map_service(self, raw: Dict[str, Any]) -> Service:
        return Service(**self._metadata(raw))

    def map_config_map(self, raw: Dict[str, Any]) -> ConfigMap:
        return ConfigMap(**self._metadata(raw))

    def map_secret(self, raw: Dict[str, Any]) -> Secret:
        return Secret(**self._metadata(raw))

    def map_hpa(self, raw: Dict[str, Any]) -> HorizontalPodAutoscaler:
        return HorizontalPodAutoscaler(
            **self._metadata(raw),
            target_kind=safe_get(raw, "spec.scaleTargetRef.kind"),
            target_name=safe_get(raw, "spec.scaleTargetRef.name"),
            min_replicas=safe_get(raw, "spec.minReplicas"),
            max_replicas=safe_get(raw, "spec.maxReplicas"),
        )

    def map_constraint_template(self, raw: Dict[str, Any]) -> ConstraintTemplate:
        metadata = self._metadata(raw, namespaced=False)
        return ConstraintTemplate(
            name=metadata["name"],
            constraint_kind=safe_get(raw, "spec.crd.spec.names.kind"),
        )

    # Azure resources

    def map_cluster(self, raw: Dict[str, Any]) -> ClusterDetails:
        name = raw.get("name")
        if not name:
            raise DataValidationException("cluster.name", name, "cluster payload has no name")

        resource_id = raw.get("id")
        pools = _pick(raw, "agent_pool_profiles", "agentPoolProfiles", default=[])
        addons = _pick(raw, "addon_profiles", "addonProfiles", default={})
        secrets_addon = addons.get("azureKeyvaultSecretsProvider") or addons.get("azurekeyvaultsecretsprovider") or {}

        return ClusterDetails(
            id=resource_id,
            name=name,
            resource_group=_pick(raw, "resource_group", "resourceGroup",
                                 default=resource_id.split("/")[4] if resource_id and resource_id.count("/") > 4 else None),
            location=raw.get("location"),
            kubernetes_version=_pick(raw, "kubernetes_version", "kubernetesVersion"),
            sku_tier=safe_get(raw, "sku.tier"),
            identity_type=safe_get(raw, "identity.type"),
            kubelet_identity_object_id=_pick(
                raw, "identity_profile.kubeletidentity.object_id", "identityProfile.kubeletidentity.objectId"
            ),
            pod_identity_enabled=bool(_pick(raw, "pod_identity_profile.enabled", "podIdentityProfile.enabled")),
            workload_identity_enabled=bool(_pick(
                raw, "security_profile.workload_identity.enabled", "securityProfile.workloadIdentity.enabled"
            )),
            authorized_ip_ranges=tuple(_pick(
                raw, "api_server_access_profile.authorized_ip_ranges", "apiServerAccessProfile.authorizedIpRanges",
                default=[]
            )),
            private_cluster_enabled=bool(_pick(
                raw, "api_server_access_profile.enable_private_cluster", "apiServerAccessProfile.enablePrivateCluster"
            )),
            aad_enabled=bool(_pick(raw, "aad_profile", "aadProfile")),
            aad_managed=bool(_pick(raw, "aad_profile.managed", "aadProfile.managed")),
            secrets_store_addon_enabled=bool(secrets_addon.get("enabled")),
            defender_enabled=bool(_pick(
                raw, "security_profile.defender.security_monitoring.enabled",
                "securityProfile.defender.securityMonitoring.enabled"
            )),
            autoscaler_profile={
                str(k): str(v) for k, v in
                (_pick(raw, "auto_scaler_profile", "autoScalerProfile", default={}) or {}).items()
                if v is not None
            },
            node_pools=tuple(self.map_node_pool(pool) for pool in pools),
        )

    def map_node_pool(self, raw: Dict[str, Any]) -> NodePool:
        return NodePool(
            name=raw.get("name") or "unnamed",
            mode=raw.get("mode"),
            vm_size=_pick(raw, "vm_size", "vmSize"),
            count=raw.get("count"),
            enable_auto_scaling=bool(_pick(raw, "enable_auto_scaling", "enableAutoScaling")),
            min_count=_pick(raw, "min_count", "minCount"),
            max_count=_pick(raw, "max_count", "maxCount"),
            availability_zones=tuple(_pick(raw, "availability_zones", "availabilityZones", default=[])),
        )

    def map_registry(self, raw: Dict[str, Any]) -> ContainerRegistry:
        name = raw.get("name")
        if not name:
            raise DataValidationException("registry.name", name, "registry payload has no name")
        connections = _pick(raw, "private_endpoint_connections", "privateEndpointConnections", default=[])
        return ContainerRegistry(
            id=raw.get("id"),
            name=name,
            sku=safe_get(raw, "sku.name"),
            public_network_access=_pick(raw, "public_network_access", "publicNetworkAccess"),
            network_default_action=_pick(raw, "network_rule_set.default_action", "networkRuleSet.defaultAction"),
            private_endpoint_connections=tuple(c.get("id") or c.get("name") or "" for c in connections),
        )
