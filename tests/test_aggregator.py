"""Tests for topology aggregation."""

from azure_network_designer.config import RuntimeConfig
from azure_network_designer.models import RawModel, ResourceKind
from azure_network_designer.normalize.aggregator import DEFAULT_HUB_CIDR, aggregate
from azure_network_designer.normalize.sanitizer import IdSession


def _aggregate(data: dict):
    return aggregate(RawModel.model_validate(data), IdSession())


class TestVNetShapes:
    """Tests for the three upstream VNet shapes."""

    def test_flat_vnets(self):
        """Flat vnets keep their declared kinds and order."""
        model = _aggregate(
            {
                "vnets": [
                    {"id": "hub", "kind": "hub", "cidr": "10.0.0.0/16"},
                    {"id": "s1", "kind": "spoke", "cidr": "10.1.0.0/16"},
                    {"id": "s2", "cidr": "10.2.0.0/16"},
                ]
            }
        )
        assert [v.id for v in model.vnets] == ["hub", "s1", "s2"]
        assert [s.id for s in model.spokes] == ["s1", "s2"]

    def test_hubs_and_spokes(self):
        """hubs + spokes become hubs first, then spokes."""
        model = _aggregate(
            {
                "hubs": [{"id": "h1", "cidr": "10.0.0.0/16"}, {"id": "h2", "cidr": "10.10.0.0/16"}],
                "spokes": [{"id": "s1", "cidr": "10.1.0.0/16"}],
            }
        )
        assert [h.id for h in model.hubs] == ["h1", "h2"]
        assert model.hub.id == "h1"

    def test_legacy_single_hub(self):
        """A legacy hub field becomes the only hub."""
        model = _aggregate({"hub": {"id": "core", "cidr": "10.0.0.0/16"}, "spokes": []})
        assert [h.id for h in model.hubs] == ["core"]

    def test_flat_vnets_take_precedence(self):
        """When vnets is present the other shapes are ignored."""
        model = _aggregate(
            {
                "vnets": [{"id": "hub", "kind": "hub", "cidr": "10.0.0.0/16"}],
                "hub": {"id": "other", "cidr": "10.9.0.0/16"},
            }
        )
        assert [v.id for v in model.vnets] == ["hub"]

    def test_missing_hub_synthesized(self):
        """A model without hubs gets a default hub and a fix note."""
        model = _aggregate({"spokes": [{"id": "s1", "cidr": "10.1.0.0/16"}]})
        assert model.hub.id == "hub"
        assert model.hub.cidr == DEFAULT_HUB_CIDR
        assert model.vnets[0] is model.hub
        assert any("default hub" in f for f in model.fixes)

    def test_synthesized_hub_id_avoids_collision(self):
        """The default hub id must not clash with a spoke called hub."""
        model = _aggregate({"spokes": [{"id": "hub", "cidr": "10.1.0.0/16"}]})
        assert model.hub.id == "hub_2"
        assert [s.id for s in model.spokes] == ["hub"]

    def test_kinds_case_insensitive(self):
        """Declared kinds match regardless of case."""
        model = _aggregate(
            {
                "vnets": [
                    {"id": "core", "kind": "Hub", "cidr": "10.0.0.0/16"},
                    {"id": "web", "kind": "SPOKE", "cidr": "10.1.0.0/16"},
                ]
            }
        )
        assert model.hub.id == "core"
        assert [s.id for s in model.spokes] == ["web"]
        assert not any("default hub" in f for f in model.fixes)


class TestIds:
    """Tests for id sanitizing and uniqueness."""

    def test_missing_vnet_id_generated(self):
        """VNets without ids get generated ids."""
        model = _aggregate({"hub": {"cidr": "10.0.0.0/16"}})
        assert model.hub.id == "n0"

    def test_duplicate_vnet_ids_suffixed(self):
        """Repeated VNet ids are made unique."""
        model = _aggregate(
            {"vnets": [{"id": "hub", "kind": "hub"}, {"id": "hub"}, {"id": "hub"}]}
        )
        assert [v.id for v in model.vnets] == ["hub", "hub_2", "hub_3"]

    def test_subnet_ids_unique_per_vnet(self):
        """Subnet ids are unique within their VNet only."""
        model = _aggregate(
            {
                "vnets": [
                    {"id": "a", "kind": "hub", "cidr": "10.0.0.0/16", "subnets": [{"id": "sn"}, {"id": "sn"}]},
                    {"id": "b", "cidr": "10.1.0.0/16", "subnets": [{"id": "sn"}]},
                ]
            }
        )
        assert [s.id for s in model.vnet("a").subnets] == ["sn", "sn_2"]
        assert [s.id for s in model.vnet("b").subnets] == ["sn"]

    def test_resource_ids_sanitized(self):
        """Resource ids lose unsafe characters."""
        model = _aggregate({"resources": [{"type": "kv", "id": "key-vault.1"}]})
        assert model.resources[0].id == "key_vault_1"

    def test_numeric_ids_accepted(self):
        """Numeric ids and labels are coerced to strings."""
        model = _aggregate(
            {"hub": {"id": 1, "cidr": "10.0.0.0/16", "label": 7, "subnets": [{"id": 2, "cidr": "10.0.1.0/24"}]}}
        )
        assert model.hub.id == "1"
        assert model.hub.label == "7"
        assert [s.id for s in model.hub.subnets] == ["2"]


class TestCidrs:
    """Tests for address fallbacks."""

    def test_invalid_vnet_cidr_replaced(self):
        """Invalid VNet CIDRs get an indexed fallback."""
        model = _aggregate(
            {"vnets": [{"id": "hub", "kind": "hub", "cidr": "bogus"}, {"id": "s1"}]}
        )
        assert model.vnet("hub").cidr == "10.0.0.0/16"
        assert model.vnet("s1").cidr == "10.1.0.0/16"
        assert len(model.fixes) == 2

    def test_missing_subnet_cidr_carved(self):
        """Subnets without a CIDR get a /24 from their VNet."""
        model = _aggregate(
            {"vnets": [{"id": "s1", "kind": "hub", "cidr": "10.5.0.0/16", "subnets": [{"id": "a"}, {"id": "b"}]}]}
        )
        assert [s.cidr for s in model.vnet("s1").subnets] == ["10.5.0.0/24", "10.5.1.0/24"]

    def test_out_of_range_cidrs_replaced(self):
        """Well-formed but impossible CIDRs take the fallback path."""
        model = _aggregate(
            {"hub": {"id": "hub", "cidr": "10.0.0.0/40", "subnets": [{"id": "a", "cidr": "300.0.0.0/24"}]}}
        )
        assert model.hub.cidr == DEFAULT_HUB_CIDR
        assert model.hub.subnet("a").cidr == "10.0.0.0/24"
        assert len(model.fixes) == 2


class TestSubnetPurpose:
    """Tests for purpose inference."""

    def test_reserved_name_wins(self):
        """Reserved subnet names fix the purpose."""
        model = _aggregate(
            {"hub": {"id": "hub", "cidr": "10.0.0.0/16", "subnets": [{"id": "GatewaySubnet", "purpose": "app"}]}}
        )
        assert model.hub.subnets[0].purpose == "gateway"

    def test_unknown_purpose_is_infra(self):
        """Unknown purposes fall back to infra."""
        model = _aggregate(
            {"hub": {"id": "hub", "cidr": "10.0.0.0/16", "subnets": [{"id": "x", "purpose": "misc"}]}}
        )
        assert model.hub.subnets[0].purpose == "infra"


class TestResources:
    """Tests for resource dedup and reference rewriting."""

    def test_duplicates_by_type_and_label_dropped(self):
        """Same type and label keeps only the first."""
        model = _aggregate(
            {
                "resources": [
                    {"type": "SQL Database", "id": "db1", "label": "DB"},
                    {"type": "SqlDb", "id": "db2", "label": "DB"},
                    {"type": "SqlDb", "id": "db3", "label": "Other"},
                ]
            }
        )
        assert [r.id for r in model.resources] == ["db1", "db3"]

    def test_reference_to_dropped_duplicate_follows_survivor(self):
        """Endpoints pointing at a dropped duplicate retarget to the survivor."""
        model = _aggregate(
            {
                "resources": [
                    {"type": "SqlDb", "id": "db1", "label": "DB"},
                    {"type": "SqlDb", "id": "db2", "label": "DB"},
                    {"type": "Private Endpoint", "id": "pe", "targetResourceType": "SqlDb", "targetResourceId": "db2"},
                ]
            }
        )
        assert model.resource("pe").target_resource_id == "db1"

    def test_renamed_ids_propagate(self):
        """Subnet and resource renames flow into every reference."""
        model = _aggregate(
            {
                "hub": {"id": "hub-1", "cidr": "10.0.0.0/16"},
                "spokes": [
                    {
                        "id": "spoke-1",
                        "cidr": "10.1.0.0/16",
                        "subnets": [{"id": "sn-app", "cidr": "10.1.1.0/24", "routeTableId": "rt-1"}],
                    }
                ],
                "peerings": [{"fromVnetId": "hub-1", "toVnetId": "spoke-1"}],
                "resources": [
                    {"type": "RouteTable", "id": "rt-1"},
                    {"type": "AppService", "id": "web", "subnetId": "sn-app"},
                    {"type": "PrivateDnsZone", "id": "pdz", "links": [{"vnetId": "spoke-1"}]},
                ],
            }
        )
        assert model.peerings[0].from_vnet_id == "hub_1"
        assert model.peerings[0].to_vnet_id == "spoke_1"
        assert model.vnet("spoke_1").subnets[0].route_table_id == "rt_1"
        assert model.resource("web").subnet_id == "sn_app"
        assert model.resource("pdz").links[0].vnet_id == "spoke_1"

    def test_invalid_attributes_discarded(self):
        """Attributes that fail validation are dropped, the resource survives."""
        model = _aggregate({"resources": [{"type": "SqlDb", "id": "db", "tier": "Premium"}]})
        assert model.resource("db").tier == "GP"

    def test_type_normalized(self):
        """Free-text types become canonical kinds."""
        model = _aggregate({"resources": [{"type": "Web Application Gateway (WAF)", "id": "g"}]})
        assert model.resources[0].type == ResourceKind.APPLICATION_GATEWAY


class TestModelLevel:
    """Tests for region, notes and edges."""

    def test_upstream_edges_discarded(self):
        """Edges from upstream never reach the model."""
        model = _aggregate({"edges": [{"from": "a", "to": "b"}], "hub": {"id": "hub"}})
        assert model.edges == []

    def test_notes_carried(self):
        """Upstream notes are kept."""
        model = _aggregate({"notes": ["hello"], "hub": {"id": "hub", "cidr": "10.0.0.0/16"}})
        assert model.notes == ["hello"]

    def test_region_default_from_config(self):
        """Missing region falls back to the configured default."""
        RuntimeConfig.set_default_region("westeurope")
        model = _aggregate({"hub": {"id": "hub", "cidr": "10.0.0.0/16"}})
        assert model.region == "westeurope"
