"""Rule catalog and the default registry."""

from akshealth.engine.registry import RuleRegistry
from akshealth.engine.verification import RoleAssignmentVerifier
from .development import (
    LivenessProbeRule,
    ReadinessProbeRule,
    StartupProbeRule,
    PreStopHookRule,
    SingleReplicaRule,
    ConsistentTaggingRule,
    HorizontalPodAutoscalerRule,
    SecretsStoreProviderRule,
    ManagedPodIdentityRule,
    DefaultNamespaceRule,
    RequestsAndLimitsRule,
    DefaultSecurityContextRule,
)
from .image_management import (
    AllowedImagesPolicyRule,
    PrivilegedContainerPolicyRule,
    AcrRbacIntegrationRule,
    RegistryPrivateEndpointRule,
    RuntimeContainerSecurityRule,
)
from .cluster_setup import (
    AuthorizedIpRangesRule,
    ManagedAadIntegrationRule,
    AutoscaleRule,
    KubernetesDashboardRule,
    MultipleNodePoolsRule,
)
from .disaster_recovery import AvailabilityZonesRule, ControlPlaneSlaRule, VeleroRule


def build_default_registry(verifier: RoleAssignmentVerifier) -> RuleRegistry:
    """Register the full catalog in report order."""
    registry = RuleRegistry()
    rules = [
        # Development
        LivenessProbeRule(),
        ReadinessProbeRule(),
        StartupProbeRule(),
        PreStopHookRule(),
        SingleReplicaRule(),
        ConsistentTaggingRule(),
        HorizontalPodAutoscalerRule(),
        SecretsStoreProviderRule(),
        ManagedPodIdentityRule(),
        DefaultNamespaceRule(),
        RequestsAndLimitsRule(),
        DefaultSecurityContextRule(),
        # Image management
        AllowedImagesPolicyRule(),
        PrivilegedContainerPolicyRule(),
        AcrRbacIntegrationRule(verifier),
        RegistryPrivateEndpointRule(),
        RuntimeContainerSecurityRule(),
        # Cluster setup
        AuthorizedIpRangesRule(),
        ManagedAadIntegrationRule(),
        AutoscaleRule(),
        KubernetesDashboardRule(),
        MultipleNodePoolsRule(),
        # Disaster recovery
        AvailabilityZonesRule(),
        ControlPlaneSlaRule(),
        VeleroRule(),
    ]
    for rule in rules:
        registry.register(rule)
    return registry


__all__ = [
    "build_default_registry",
    "LivenessProbeRule",
    "ReadinessProbeRule",
    "StartupProbeRule",
    "PreStopHookRule",
    "SingleReplicaRule",
    "ConsistentTaggingRule",
    "HorizontalPodAutoscalerRule",
    "SecretsStoreProviderRule",
    "ManagedPodIdentityRule",
    "DefaultNamespaceRule",
    "RequestsAndLimitsRule",
    "DefaultSecurityContextRule",
    "AllowedImagesPolicyRule",
    "PrivilegedContainerPolicyRule",
    "AcrRbacIntegrationRule",
    "RegistryPrivateEndpointRule",
    "RuntimeContainerSecurityRule",
    "AuthorizedIpRangesRule",
    "ManagedAadIntegrationRule",
    "AutoscaleRule",
    "KubernetesDashboardRule",
    "MultipleNodePoolsRule",
    "AvailabilityZonesRule",
    "ControlPlaneSlaRule",
    "VeleroRule",
]
