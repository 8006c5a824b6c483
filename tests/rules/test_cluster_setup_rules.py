"""Tests for the Cluster Setup rule category."""

from akshealth.models import NodePool, Severity
from akshealth.rules.cluster_setup import (
    AuthorizedIpRangesRule,
    AutoscaleRule,
    KubernetesDashboardRule,
    ManagedAadIntegrationRule,
    MultipleNodePoolsRule,
)
from tests.factories import make_cluster, make_inventory, make_pod


class TestAuthorizedIpRanges:
    async def test_public_cluster_without_ranges_is_critical(self, configuration):
        inventory = make_inventory(cluster=make_cluster(authorized_ip_ranges=()))
        findings = await AuthorizedIpRangesRule().evaluate(inventory, configuration)
        assert [f.severity for f in findings] == [Severity.CRITICAL]
        assert findings[0].is_cluster_wide

    async def test_private_cluster_is_exempt(self, configuration):
        cluster = make_cluster(authorized_ip_ranges=(), private_cluster_enabled=True)
        assert await AuthorizedIpRangesRule().evaluate(make_inventory(cluster=cluster), configuration) == []


class TestManagedAad:
    async def test_managed_passes(self, configuration):
        assert await ManagedAadIntegrationRule().evaluate(make_inventory(), configuration) == []

    async def test_legacy_integration(self, configuration):
        cluster = make_cluster(aad_enabled=True, aad_managed=False)
        findings = await ManagedAadIntegrationRule().evaluate(make_inventory(cluster=cluster), configuration)
        assert "legacy" in findings[0].message

    async def test_no_integration(self, configuration):
        cluster = make_cluster(aad_enabled=False, aad_managed=False)
        findings = await ManagedAadIntegrationRule().evaluate(make_inventory(cluster=cluster), configuration)
        assert len(findings) == 1


async def test_autoscale_requires_one_autoscaled_pool(configuration):
    pools = (NodePool(name="system"), NodePool(name="user"))
    findings = await AutoscaleRule().evaluate(make_inventory(cluster=make_cluster(node_pools=pools)), configuration)
    assert len(findings) == 1
    assert "system, user" in findings[0].message

    pools = (NodePool(name="system"), NodePool(name="user", enable_auto_scaling=True))
    assert await AutoscaleRule().evaluate(make_inventory(cluster=make_cluster(node_pools=pools)), configuration) == []


class TestKubernetesDashboard:
    async def test_dashboard_by_name(self, configuration):
        inventory = make_inventory(pods=[make_pod("kubernetes-dashboard-5f7b9c", namespace="kube-system")])
        findings = await KubernetesDashboardRule().evaluate(inventory, configuration)
        assert len(findings) == 1
        assert "kube-system/kubernetes-dashboard-5f7b9c" in findings[0].message

    async def test_dashboard_by_label(self, configuration):
        pod = make_pod("ui-0", labels={"k8s-app": "kubernetes-dashboard"})
        assert len(await KubernetesDashboardRule().evaluate(make_inventory(pods=[pod]), configuration)) == 1

    async def test_no_dashboard(self, configuration):
        assert await KubernetesDashboardRule().evaluate(make_inventory(pods=[make_pod()]), configuration) == []


async def test_single_node_pool(configuration):
    cluster = make_cluster(node_pools=(NodePool(name="system", enable_auto_scaling=True),))
    findings = await MultipleNodePoolsRule().evaluate(make_inventory(cluster=cluster), configuration)
    assert [f.severity for f in findings] == [Severity.INFO]
