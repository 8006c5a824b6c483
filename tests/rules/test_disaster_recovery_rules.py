"""Tests for the Disaster Recovery rule category."""

import pytest

from akshealth.models import NodePool
from akshealth.rules.disaster_recovery import AvailabilityZonesRule, ControlPlaneSlaRule, VeleroRule
from tests.factories import make_cluster, make_inventory, make_pod


class TestAvailabilityZones:
    async def test_zone_redundant_pools_pass(self, configuration):
        assert await AvailabilityZonesRule().evaluate(make_inventory(), configuration) == []

    async def test_single_zone_pools_listed(self, configuration):
        pools = (NodePool(name="system", availability_zones=("1", "2")),
                 NodePool(name="user", availability_zones=("1",)),
                 NodePool(name="batch"))
        findings = await AvailabilityZonesRule().evaluate(make_inventory(cluster=make_cluster(node_pools=pools)),
                                                          configuration)
        assert len(findings) == 1
        assert findings[0].message.endswith("user, batch")

    async def test_no_pools(self, configuration):
        findings = await AvailabilityZonesRule().evaluate(make_inventory(cluster=make_cluster(node_pools=())),
                                                          configuration)
        assert len(findings) == 1


class TestControlPlaneSla:
    @pytest.mark.parametrize("tier", ["Standard", "Paid", "premium"])
    async def test_paid_tiers_pass(self, tier, configuration):
        inventory = make_inventory(cluster=make_cluster(sku_tier=tier))
        assert await ControlPlaneSlaRule().evaluate(inventory, configuration) == []

    @pytest.mark.parametrize("tier", ["Free", None])
    async def test_free_tier_flagged(self, tier, configuration):
        inventory = make_inventory(cluster=make_cluster(sku_tier=tier))
        findings = await ControlPlaneSlaRule().evaluate(inventory, configuration)
        assert "Free tier" in findings[0].message


class TestVelero:
    async def test_velero_present(self, configuration):
        assert await VeleroRule().evaluate(make_inventory(), configuration) == []

    async def test_velero_by_label(self, configuration):
        pod = make_pod("backup-agent-0", namespace="backups", labels={"app.kubernetes.io/name": "velero"})
        inventory = make_inventory(pods=[pod], include_addons=False)
        assert await VeleroRule().evaluate(inventory, configuration) == []

    async def test_velero_missing(self, configuration):
        inventory = make_inventory(pods=[make_pod()], include_addons=False)
        assert len(await VeleroRule().evaluate(inventory, configuration)) == 1
