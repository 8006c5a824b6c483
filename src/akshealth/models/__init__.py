from .inventory import *
from .findings import *
from .configuration import *

__all__ = [
    "ResourceKind",
    "OptionalResource",
    "ResourceRef",
    "Probe",
    "LifecycleHook",
    "ResourceRequirements",
    "SecurityContext",
    "Container",
    "PodVolume",
    "NamespacedObject",
    "Namespace",
    "Pod",
    "Deployment",
    "Service",
    "ConfigMap",
    "Secret",
    "HorizontalPodAutoscaler",
    "ConstraintTemplate",
    "NodePool",
    "ClusterDetails",
    "ContainerRegistry",
    "ResourceInventory",
    "Category",
    "Severity",
    "Finding",
    "TagPolicy",
    "AuditConfiguration",
]
