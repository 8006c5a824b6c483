"""
Resource Inventory Models
Immutable, normalized snapshot of the cluster and cloud objects fetched for one audit run
"""

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer
from typing import Annotated, Dict, FrozenSet, Mapping, Optional, Tuple
from types import MappingProxyType
from enum import Enum


class ResourceKind(str, Enum):
    """Kinds of objects a finding can be attributed to."""
    NAMESPACE = "Namespace"
    POD = "Pod"
    DEPLOYMENT = "Deployment"
    SERVICE = "Service"
    CONFIG_MAP = "ConfigMap"
    SECRET = "Secret"
    HORIZONTAL_POD_AUTOSCALER = "HorizontalPodAutoscaler"
    CONSTRAINT_TEMPLATE = "ConstraintTemplate"
    CLUSTER_NODE = "ClusterNode"
    CONTAINER_REGISTRY = "ContainerRegistry"
    CLUSTER = "Cluster"


class OptionalResource(str, Enum):
    """Resource kinds whose absence is a valid cluster state."""
    CONSTRAINT_TEMPLATES = "ConstraintTemplates"


def _read_only(value: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(value))


def _as_dict(value: Mapping[str, str]) -> Dict[str, str]:
    return dict(value)


# Key/value metadata that stays read-only after validation
ReadOnlyMap = Annotated[Mapping[str, str], AfterValidator(_read_only), PlainSerializer(_as_dict)]


class InventoryModel(BaseModel):
    """Base model for inventory objects. Instances are read-only once built."""

    model_config = ConfigDict(frozen=True, extra="ignore", validate_default=True)


class ResourceRef(InventoryModel):
    """Identifies a concrete object for attribution."""

    kind: ResourceKind
    namespace: Optional[str] = None
    name: str

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name


class Probe(InventoryModel):
    """Container probe. Only the handler type matters to the rules."""

    handler: Optional[str] = Field(None, description="httpGet, exec, tcpSocket or grpc")


class LifecycleHook(InventoryModel):
    handler: Optional[str] = Field(None, description="exec, httpGet, tcpSocket or sleep")


class ResourceRequirements(InventoryModel):
    """CPU and memory requests and limits as declared, unparsed."""

    cpu_request: Optional[str] = None
    memory_request: Optional[str] = None
    cpu_limit: Optional[str] = None
    memory_limit: Optional[str] = None

    @property
    def missing(self) -> Tuple[str, ...]:
        """Names of the requests/limits that are not set."""
        fields = (
            ("cpu request", self.cpu_request),
            ("memory request", self.memory_request),
            ("cpu limit", self.cpu_limit),
            ("memory limit", self.memory_limit),
        )
        return tuple(label for label, value in fields if not value)


class SecurityContext(InventoryModel):
    """Union of the pod-level and container-level security context fields the rules read."""

    run_as_non_root: Optional[bool] = None
    run_as_user: Optional[int] = None
    read_only_root_filesystem: Optional[bool] = None
    allow_privilege_escalation: Optional[bool] = None
    privileged: Optional[bool] = None
    dropped_capabilities: Tuple[str, ...] = ()
    seccomp_profile: Optional[str] = None

    @property
    def is_hardened(self) -> bool:
        """True when at least one setting departs from the permissive defaults."""
        return bool(
            self.run_as_non_root
            or (self.run_as_user is not None and self.run_as_user != 0)
            or self.read_only_root_filesystem
            or self.allow_privilege_escalation is False
            or self.dropped_capabilities
            or self.seccomp_profile
        )


class Container(InventoryModel):
    name: str
    image: Optional[str] = None
    liveness_probe: Optional[Probe] = None
    readiness_probe: Optional[Probe] = None
    startup_probe: Optional[Probe] = None
    pre_stop_hook: Optional[LifecycleHook] = None
    resources: ResourceRequirements = Field(default_factory=ResourceRequirements)
    security_context: Optional[SecurityContext] = None


class PodVolume(InventoryModel):
    name: str
    csi_driver: Optional[str] = None
    secret_provider_class: Optional[str] = None


class NamespacedObject(InventoryModel):
    """Common shape of every namespace-scoped collection item."""

    kind: ResourceKind
    namespace: str
    name: str
    labels: ReadOnlyMap = Field(default_factory=dict)
    annotations: ReadOnlyMap = Field(default_factory=dict)

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(kind=self.kind, namespace=self.namespace, name=self.name)


class Namespace(InventoryModel):
    name: str
    labels: ReadOnlyMap = Field(default_factory=dict)
    annotations: ReadOnlyMap = Field(default_factory=dict)

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(kind=ResourceKind.NAMESPACE, name=self.name)


class Pod(NamespacedObject):
    kind: ResourceKind = ResourceKind.POD
    containers: Tuple[Container, ...] = ()
    init_containers: Tuple[Container, ...] = ()
    security_context: Optional[SecurityContext] = None
    volumes: Tuple[PodVolume, ...] = ()
    owner_kind: Optional[str] = None
    owner_name: Optional[str] = None


class Deployment(NamespacedObject):
    kind: ResourceKind = ResourceKind.DEPLOYMENT
    replicas: int = Field(1, ge=0, description="Kubernetes defaults an omitted replica count to 1")


class Service(NamespacedObject):
    kind: ResourceKind = ResourceKind.SERVICE


class ConfigMap(NamespacedObject):
    kind: ResourceKind = ResourceKind.CONFIG_MAP


class Secret(NamespacedObject):
    kind: ResourceKind = ResourceKind.SECRET


class HorizontalPodAutoscaler(NamespacedObject):
    kind: ResourceKind = ResourceKind.HORIZONTAL_POD_AUTOSCALER
    target_kind: Optional[str] = None
    target_name: Optional[str] = None
    min_replicas: Optional[int] = None
    max_replicas: Optional[int] = None


class ConstraintTemplate(InventoryModel):
    """Gatekeeper constraint template; `constraint_kind` is the CRD kind it defines."""

    name: str
    constraint_kind: Optional[str] = None

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(kind=ResourceKind.CONSTRAINT_TEMPLATE, name=self.name)


class NodePool(InventoryModel):
    name: str
    mode: Optional[str] = None
    vm_size: Optional[str] = None
    count: Optional[int] = None
    enable_auto_scaling: bool = False
    min_count: Optional[int] = None
    max_count: Optional[int] = None
    availability_zones: Tuple[str, ...] = ()


class ClusterDetails(InventoryModel):
    """Cluster-level attributes of the managed cluster."""

    id: Optional[str] = None
    name: str
    resource_group: Optional[str] = None
    location: Optional[str] = None
    kubernetes_version: Optional[str] = None
    sku_tier: Optional[str] = None

    # Identity
    identity_type: Optional[str] = None
    kubelet_identity_object_id: Optional[str] = None
    pod_identity_enabled: bool = False
    workload_identity_enabled: bool = False

    # Network / API server access
    authorized_ip_ranges: Tuple[str, ...] = ()
    private_cluster_enabled: bool = False

    # AAD integration
    aad_enabled: bool = False
    aad_managed: bool = False

    # Add-ons and security profile
    secrets_store_addon_enabled: bool = False
    defender_enabled: bool = False

    autoscaler_profile: ReadOnlyMap = Field(default_factory=dict)
    node_pools: Tuple[NodePool, ...] = ()

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(kind=ResourceKind.CLUSTER, name=self.name)


class ContainerRegistry(InventoryModel):
    id: Optional[str] = None
    name: str
    sku: Optional[str] = None
    public_network_access: Optional[str] = None
    network_default_action: Optional[str] = None
    private_endpoint_connections: Tuple[str, ...] = ()

    @property
    def is_network_restricted(self) -> bool:
        """Public access disabled, or the firewall denies by default."""
        return (
            (self.public_network_access or "").lower() == "disabled"
            or (self.network_default_action or "").lower() == "deny"
        )

    @property
    def ref(self) -> ResourceRef:
        return ResourceRef(kind=ResourceKind.CONTAINER_REGISTRY, name=self.name)


class ResourceInventory(InventoryModel):
    """Snapshot of all resources collected for one audit run.

    `constraint_templates` is None when the policy engine is not installed,
    which is distinct from an installed engine with no templates.
    """

    cluster: ClusterDetails
    namespaces: Tuple[Namespace, ...] = ()
    pods: Tuple[Pod, ...] = ()
    deployments: Tuple[Deployment, ...] = ()
    services: Tuple[Service, ...] = ()
    config_maps: Tuple[ConfigMap, ...] = ()
    secrets: Tuple[Secret, ...] = ()
    horizontal_pod_autoscalers: Tuple[HorizontalPodAutoscaler, ...] = ()
    constraint_templates: Optional[Tuple[ConstraintTemplate, ...]] = None
    container_registries: Tuple[ContainerRegistry, ...] = ()

    @property
    def available_resources(self) -> FrozenSet[OptionalResource]:
        """Optional resource kinds present in this snapshot."""
        available = set()
        if self.constraint_templates is not None:
            available.add(OptionalResource.CONSTRAINT_TEMPLATES)
        return frozenset(available)
