"""Tests for the inventory mapper."""

import pytest

from akshealth.core.exceptions import DataValidationException
from akshealth.mappers import InventoryMapper
from akshealth.models import OptionalResource

SDK_CLUSTER = {
    "id": "/subscriptions/sub/resourceGroups/prod-rg/providers/Microsoft.ContainerService/managedClusters/prod",
    "name": "prod",
    "location": "westeurope",
    "kubernetes_version": "1.29.2",
    "sku": {"name": "Base", "tier": "Standard"},
    "identity": {"type": "SystemAssigned"},
    "identity_profile": {"kubeletidentity": {"object_id": "kubelet-oid", "client_id": "kubelet-cid"}},
    "security_profile": {"workload_identity": {"enabled": True},
                         "defender": {"security_monitoring": {"enabled": False}}},
    "api_server_access_profile": {"authorized_ip_ranges": ["1.2.3.4/32"]},
    "aad_profile": {"managed": True, "enable_azure_rbac": True},
    "addon_profiles": {"azureKeyvaultSecretsProvider": {"enabled": True}},
    "auto_scaler_profile": {"scan_interval": "10s", "expander": None},
    "agent_pool_profiles": [
        {"name": "system", "mode": "System", "vm_size": "Standard_D4s_v5", "count": 3,
         "enable_auto_scaling": True, "min_count": 3, "max_count": 5, "availability_zones": ["1", "2", "3"]},
    ],
}

CLI_CLUSTER = {
    "id": "/subscriptions/sub/resourcegroups/dev-rg/providers/Microsoft.ContainerService/managedClusters/dev",
    "name": "dev",
    "resourceGroup": "dev-rg",
    "sku": {"tier": "Free"},
    "identityProfile": {"kubeletidentity": {"objectId": "dev-kubelet"}},
    "podIdentityProfile": {"enabled": True},
    "apiServerAccessProfile": {"enablePrivateCluster": True},
    "agentPoolProfiles": [{"name": "pool1", "vmSize": "Standard_B2s", "enableAutoScaling": False}],
    "aadProfile": None,
}


def k8s_object(name, namespace="app", labels=None, **body):
    metadata = {"name": name, "labels": labels}
    if namespace:
        metadata["namespace"] = namespace
    return {"metadata": metadata, **body}


POD = k8s_object(
    "web-1",
    labels={"app": "web"},
    spec={
        "securityContext": {"runAsNonRoot": True},
        "containers": [{
            "name": "web",
            "image": "myacr.azurecr.io/web:1.2",
            "livenessProbe": {"httpGet": {"path": "/healthz", "port": 8080}, "periodSeconds": 10},
            "readinessProbe": {"exec": {"command": ["cat", "/ready"]}},
            "lifecycle": {"preStop": {"exec": {"command": ["sleep", "5"]}}},
            "resources": {"requests": {"cpu": "100m", "memory": "64Mi"}, "limits": {"memory": "128Mi"}},
            "securityContext": {"allowPrivilegeEscalation": False, "capabilities": {"drop": ["ALL"]}},
        }],
        "volumes": [{"name": "kv", "csi": {"driver": "secrets-store.csi.k8s.io",
                                           "volumeAttributes": {"secretProviderClass": "azure-kv"}}}],
    },
)


@pytest.fixture
def mapper():
    return InventoryMapper()


class TestClusterMapping:
    def test_sdk_payload(self, mapper):
        cluster = mapper.map_cluster(SDK_CLUSTER)

        assert cluster.resource_group == "prod-rg"
        assert cluster.sku_tier == "Standard"
        assert cluster.kubelet_identity_object_id == "kubelet-oid"
        assert cluster.workload_identity_enabled
        assert not cluster.defender_enabled
        assert cluster.authorized_ip_ranges == ("1.2.3.4/32",)
        assert cluster.aad_enabled and cluster.aad_managed
        assert cluster.secrets_store_addon_enabled
        assert cluster.autoscaler_profile == {"scan_interval": "10s"}
        pool = cluster.node_pools[0]
        assert (pool.vm_size, pool.enable_auto_scaling, pool.availability_zones) == (
            "Standard_D4s_v5", True, ("1", "2", "3")
        )

    def test_cli_payload(self, mapper):
        cluster = mapper.map_cluster(CLI_CLUSTER)

        assert cluster.resource_group == "dev-rg"
        assert cluster.kubelet_identity_object_id == "dev-kubelet"
        assert cluster.pod_identity_enabled
        assert cluster.private_cluster_enabled
        assert not cluster.aad_enabled
        assert cluster.node_pools[0].vm_size == "Standard_B2s"
        assert cluster.node_pools[0].availability_zones == ()

    def test_cluster_without_name_is_rejected(self, mapper):
        with pytest.raises(DataValidationException):
            mapper.map_cluster({"id": "x"})


class TestKubernetesMapping:
    def test_pod(self, mapper):
        pod = mapper.map_pod(POD)
        container = pod.containers[0]

        assert str(pod.ref) == "app/web-1"
        assert pod.security_context.run_as_non_root
        assert container.liveness_probe.handler == "httpGet"
        assert container.readiness_probe.handler == "exec"
        assert container.startup_probe is None
        assert container.pre_stop_hook.handler == "exec"
        assert container.resources.missing == ("cpu limit",)
        assert container.security_context.dropped_capabilities == ("ALL",)
        assert pod.volumes[0].secret_provider_class == "azure-kv"

    def test_null_labels_become_empty(self, mapper):
        deployment = mapper.map_deployment(k8s_object("api", spec={"replicas": 2}))
        assert deployment.labels == {}
        assert deployment.replicas == 2

    def test_omitted_replicas_default_to_one(self, mapper):
        assert mapper.map_deployment(k8s_object("api", spec={})).replicas == 1

    def test_hpa_target(self, mapper):
        hpa = mapper.map_hpa(k8s_object("api-hpa", spec={
            "scaleTargetRef": {"kind": "Deployment", "name": "api"}, "minReplicas": 2, "maxReplicas": 6
        }))
        assert (hpa.target_kind, hpa.target_name, hpa.min_replicas, hpa.max_replicas) == (
            "Deployment", "api", 2, 6
        )


class TestInventoryMapping:
    def test_malformed_items_are_dropped(self, mapper):
        kubernetes = {
            "namespaces": [k8s_object("app", namespace=None), {"metadata": {}}],
            "pods": [POD, k8s_object("orphan", namespace=None)],
            "deployments": [k8s_object("bad", spec={"replicas": -1}), k8s_object("good", spec={"replicas": 3})],
        }
        inventory = mapper.map_inventory(SDK_CLUSTER, kubernetes)

        assert [ns.name for ns in inventory.namespaces] == ["app"]
        assert [p.name for p in inventory.pods] == ["web-1"]
        assert [d.name for d in inventory.deployments] == ["good"]
        assert inventory.services == ()

    def test_registries_filtered_case_insensitively(self, mapper):
        registries = [
            {"name": "MyAcr", "sku": {"name": "Premium"},
             "private_endpoint_connections": [{"id": "/pe/1"}]},
            {"name": "otheracr", "sku": {"name": "Basic"}},
            {"name": "cliacr", "sku": {"name": "Standard"}, "publicNetworkAccess": "Disabled",
             "networkRuleSet": {"defaultAction": "Deny"}},
        ]
        inventory = mapper.map_inventory(SDK_CLUSTER, {}, registries, registry_names=["myacr", "CLIACR"])

        by_name = {r.name: r for r in inventory.container_registries}
        assert set(by_name) == {"MyAcr", "cliacr"}
        assert by_name["MyAcr"].private_endpoint_connections == ("/pe/1",)
        assert by_name["cliacr"].is_network_restricted

    def test_constraint_templates_absent_vs_empty(self, mapper):
        absent = mapper.map_inventory(SDK_CLUSTER, {}, constraint_templates=None)
        empty = mapper.map_inventory(SDK_CLUSTER, {}, constraint_templates=[])

        assert OptionalResource.CONSTRAINT_TEMPLATES not in absent.available_resources
        assert OptionalResource.CONSTRAINT_TEMPLATES in empty.available_resources
        assert empty.constraint_templates == ()

    def test_constraint_template_kind(self, mapper):
        template = {"metadata": {"name": "k8sallowedrepos"},
                    "spec": {"crd": {"spec": {"names": {"kind": "K8sAllowedRepos"}}}}}
        inventory = mapper.map_inventory(SDK_CLUSTER, {}, constraint_templates=[template])
        assert inventory.constraint_templates[0].constraint_kind == "K8sAllowedRepos"
