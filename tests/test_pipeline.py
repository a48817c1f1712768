"""Tests for the end-to-end normalization pipeline."""

import pytest

from azure_network_designer.models import RawModel, RequirementFlags, ResourceKind, TopologyModel
from azure_network_designer.normalize import (
    ModelInputError,
    load_model_file,
    normalize_model,
    to_raw_model,
)
from azure_network_designer.normalize.invariants import private_endpoint_target_kind
from azure_network_designer.normalize.wiring import ON_PREMISES_ID
from azure_network_designer.templates import template_web_paas


def _resource_ids(model):
    return [r.id for r in model.resources]


def _subnets(model):
    return {(v.id, s.id, s.cidr) for v in model.vnets for s in v.subnets}


def _edges(model):
    return {(e.source, e.target, e.kind) for e in model.edges}


def _assert_unique(model):
    vnet_ids = [v.id for v in model.vnets]
    assert len(vnet_ids) == len(set(vnet_ids))
    for vnet in model.vnets:
        subnet_ids = [s.id for s in vnet.subnets]
        assert len(subnet_ids) == len(set(subnet_ids))
    assert len(_resource_ids(model)) == len(set(_resource_ids(model)))


def _assert_edges_sound(model):
    known = set(_resource_ids(model)) | {v.id for v in model.vnets} | {ON_PREMISES_ID}
    for edge in model.edges:
        assert edge.source in known
        assert edge.target in known


MESSY = {
    "region": "japaneast",
    "hubs": [{"id": "hub one", "cidr": "10.0.0.0/16"}],
    "spokes": [
        {"id": "spoke-a", "cidr": "not a cidr", "subnets": [{"id": "app"}, {"id": "app"}, {"purpose": "data"}]},
        {"id": "spoke-a", "cidr": "10.2.0.0/16"},
    ],
    "resources": [
        {"type": "WAF", "label": "Front"},
        {"type": "web app", "id": "web"},
        {"type": "Azure SQL", "id": "db", "label": "DB"},
        {"type": "database", "id": "db-copy", "label": "DB"},
        {"type": "Private Endpoint", "id": "pe-1", "targetResourceType": "sql", "targetResourceId": "db-copy"},
        {"type": "firewall"},
        {"type": None, "id": "mystery"},
    ],
    "edges": [{"from": "ghost", "to": "web"}],
}


class TestScenarios:
    """Acceptance scenarios."""

    def test_scenario_a_hub_without_subnets(self, bare_hub_raw):
        """VPN and WAF on an empty hub add GatewaySubnet and AppGatewaySubnet."""
        model = normalize_model(bare_hub_raw, RequirementFlags(vpn=True, waf=True))
        gateway = model.hub.subnet("GatewaySubnet")
        assert gateway is not None
        assert gateway.cidr == "10.0.0.32/27"
        assert any(s.has_subnet("AppGatewaySubnet") for s in model.spokes)
        assert any("GatewaySubnet" in f for f in model.fixes)
        assert any(n.startswith("fix: ") and "GatewaySubnet" in n for n in model.notes)

    def test_scenario_b_duplicate_sql(self):
        """Two SqlDb resources with the same label collapse to the first."""
        raw = {
            "hub": {"id": "hub", "cidr": "10.0.0.0/16"},
            "resources": [
                {"type": "SQL Database", "id": "first", "label": "Orders"},
                {"type": "SqlDb", "id": "second", "label": "Orders"},
            ],
        }
        model = normalize_model(raw)
        assert [r.id for r in model.resources_of(ResourceKind.SQL_DB)] == ["first"]

    def test_scenario_c_missing_sql_target(self):
        """A SQL endpoint without SqlDb adds nothing for SQL."""
        raw = {"hub": {"id": "hub", "cidr": "10.0.0.0/16"}, "resources": [{"type": "AppService", "id": "web"}]}
        model = normalize_model(raw, RequirementFlags(private_endpoint_sql=True))
        assert not model.has(ResourceKind.PRIVATE_ENDPOINT)
        assert not model.has(ResourceKind.PRIVATE_DNS_ZONE)
        assert not any("Private DNS" in w for w in model.warnings)

    def test_scenario_c_other_target_keeps_warning(self, paas_raw):
        """The general endpoint warning stays when another target applies."""
        paas_raw.resources = [r for r in paas_raw.resources if r["id"] != "db"]
        flags = RequirementFlags(private_endpoint_sql=True, private_endpoint_storage=True)
        model = normalize_model(paas_raw, flags)
        targets = [r.target_resource_type for r in model.resources_of(ResourceKind.PRIVATE_ENDPOINT)]
        zones = [z.zone_name for z in model.resources_of(ResourceKind.PRIVATE_DNS_ZONE)]
        assert targets == ["Storage"]
        assert zones == ["privatelink.blob.core.windows.net"]
        assert any("Private DNS zones" in w for w in model.warnings)

    def test_scenario_d_two_app_gateways(self):
        """Distinct labels keep both gateways; the first is the entry."""
        raw = {
            "hub": {"id": "hub", "cidr": "10.0.0.0/16"},
            "resources": [
                {"type": "ApplicationGateway", "id": "agw1", "label": "Primary"},
                {"type": "ApplicationGateway", "id": "agw2", "label": "Secondary"},
                {"type": "AppService", "id": "web"},
                {"type": "AzureFirewall", "id": "afw"},
                {"type": "VpnGateway", "id": "vpn"},
            ],
        }
        model = normalize_model(raw, RequirementFlags(vpn=True, firewall=True))
        assert [r.id for r in model.resources_of(ResourceKind.APPLICATION_GATEWAY)] == ["agw1", "agw2"]
        l3 = {(e.source, e.target) for e in model.edges if e.kind == "l3"}
        assert ("afw", "agw1") in l3
        assert not any(target == "agw2" for _, target in l3)


class TestProperties:
    """Global properties of pipeline output."""

    def test_idempotent(self, all_flags):
        """A second pass adds no fixes and keeps every set."""
        first = normalize_model(template_web_paas(all_flags), all_flags)
        second = normalize_model(first, all_flags)
        assert _resource_ids(second) == _resource_ids(first)
        assert _subnets(second) == _subnets(first)
        assert _edges(second) == _edges(first)
        assert second.fixes == first.fixes
        assert set(second.warnings) == set(first.warnings)

    def test_idempotent_from_partial_input(self, paas_raw, all_flags):
        """Idempotence holds when the first pass had to repair a lot."""
        first = normalize_model(paas_raw, all_flags)
        second = normalize_model(first.to_dict(), all_flags)
        assert first.fixes
        assert second.fixes == first.fixes
        assert _resource_ids(second) == _resource_ids(first)
        assert _subnets(second) == _subnets(first)
        assert _edges(second) == _edges(first)

    def test_deterministic(self, all_flags):
        """Two independent runs give identical output."""
        one = normalize_model(RawModel.model_validate(MESSY), all_flags)
        two = normalize_model(RawModel.model_validate(MESSY), all_flags)
        assert one.to_dict() == two.to_dict()

    def test_unique_ids(self, all_flags):
        """Ids are unique for VNets, per-VNet subnets and resources."""
        _assert_unique(normalize_model(MESSY, all_flags))
        _assert_unique(normalize_model(template_web_paas(all_flags), all_flags))

    def test_edges_sound(self, all_flags):
        """Every edge references a known id."""
        model = normalize_model(MESSY, all_flags)
        assert model.edges
        _assert_edges_sound(model)
        assert all(e.source != "ghost" for e in model.edges)

    def test_private_endpoint_integrity(self, all_flags):
        """Endpoint edges land on resources of the declared kind."""
        model = normalize_model(template_web_paas(all_flags), all_flags)
        endpoints = {pe.id: pe for pe in model.resources_of(ResourceKind.PRIVATE_ENDPOINT)}
        checked = 0
        for edge in model.edges:
            if edge.source in endpoints:
                target = model.resource(edge.target)
                assert target.type == private_endpoint_target_kind(endpoints[edge.source])
                checked += 1
        assert checked == len(endpoints)

    def test_waf_invariant(self, all_flags):
        """Every spoke has exactly one AppGatewaySubnet."""
        model = normalize_model(MESSY, all_flags)
        assert model.spokes
        for spoke in model.spokes:
            assert [s.id for s in spoke.subnets].count("AppGatewaySubnet") == 1

    def test_vpn_invariant(self, all_flags):
        """Every hub has GatewaySubnet at the fixed CIDR."""
        flags = all_flags.model_copy(update={"dr_region": None})
        raw = dict(MESSY, hubs=[{"id": "h1", "cidr": "10.0.0.0/16"}, {"id": "h2", "cidr": "10.20.0.0/16"}])
        model = normalize_model(raw, flags)
        assert len(model.hubs) == 2
        for hub in model.hubs:
            assert hub.subnet("GatewaySubnet").cidr == "10.0.0.32/27"

    def test_vpn_invariant_dr_hub_shifted(self, all_flags):
        """The DR hub carries GatewaySubnet moved with its address space."""
        model = normalize_model(MESSY, all_flags)
        assert model.hub.subnet("GatewaySubnet").cidr == "10.0.0.32/27"
        assert model.vnet("hub_one_dr").subnet("GatewaySubnet").cidr == "10.2.0.32/27"


class TestPipeline:
    """Pipeline behavior beyond the properties."""

    def test_flag_region_overrides(self, bare_hub_raw):
        """The flag region replaces the model region."""
        model = normalize_model(bare_hub_raw, RequirementFlags(region="westeurope"))
        assert model.region == "westeurope"

    def test_notes_ordered_fix_then_warn(self, bare_hub_raw):
        """fix: notes come before warn: notes."""
        model = normalize_model(bare_hub_raw, RequirementFlags(vpn=True))
        kinds = [n.split(":")[0] for n in model.notes if n.startswith(("fix: ", "warn: "))]
        assert kinds == sorted(kinds)

    def test_traffic_manager_without_dr(self, paas_raw):
        """Traffic Manager alone fronts the single entry."""
        model = normalize_model(paas_raw, RequirementFlags(traffic_manager=True))
        assert ("tm", "web", "l7") in _edges(model)
        assert "added resource TrafficManager(tm)" in model.fixes
        assert "Traffic Manager entry configured for failover." not in model.notes

    def test_dr_with_traffic_manager(self, paas_raw):
        """DR plus Traffic Manager fronts both regions."""
        flags = RequirementFlags(dr_region="japanwest", traffic_manager=True)
        model = normalize_model(paas_raw, flags)
        assert {("tm", "web"), ("tm", "web_dr")} <= {(e.source, e.target) for e in model.edges}
        assert model.notes.count("Traffic Manager entry configured for failover.") == 1

    def test_dr_route_tables_for_cloned_spoke(self, paas_raw):
        """The cloned spoke gets its own firewall route table."""
        flags = RequirementFlags(firewall=True, dr_region="japanwest")
        model = normalize_model(paas_raw, flags)
        assert model.vnet("spoke1_dr").subnet("app_dr").route_table_id == "rt_spoke1_dr_default"

    def test_accepts_topology_model(self, paas_raw):
        """A normalized model can be fed back in."""
        first = normalize_model(paas_raw)
        assert isinstance(normalize_model(first), TopologyModel)

    def test_empty_input(self):
        """An empty mapping still yields a hub."""
        model = normalize_model({})
        assert model.hub is not None
        assert model.edges == []


class TestAwkwardInput:
    """Inputs that are valid-looking but irregular still normalize."""

    def test_named_dns_zone_not_duplicated(self):
        """A zone known only by id and label is reused for its endpoint."""
        raw = {
            "hub": {"id": "hub", "cidr": "10.0.0.0/16"},
            "resources": [
                {"type": "SqlDb", "id": "db"},
                {
                    "type": "Private DNS Zone",
                    "id": "pdz-privatelink-database-windows-net",
                    "label": "privatelink.database.windows.net",
                },
            ],
        }
        model = normalize_model(raw, RequirementFlags(private_endpoint_sql=True))
        _assert_unique(model)
        zones = model.resources_of(ResourceKind.PRIVATE_DNS_ZONE)
        assert [z.id for z in zones] == ["pdz_privatelink_database_windows_net"]
        assert zones[0].zone_name == "privatelink.database.windows.net"
        assert len(model.resources) == 3

    def test_named_route_table_completed(self):
        """A bare route table holding the default id gets the firewall route."""
        raw = {
            "hub": {"id": "hub", "cidr": "10.0.0.0/16"},
            "spokes": [{"id": "spoke", "cidr": "10.1.0.0/16", "subnets": [{"id": "app", "purpose": "app"}]}],
            "resources": [{"type": "RouteTable", "id": "rt-spoke-default"}],
        }
        model = normalize_model(raw, RequirementFlags(firewall=True))
        _assert_unique(model)
        assert [r.id for r in model.resources_of(ResourceKind.ROUTE_TABLE)] == ["rt_spoke_default"]
        assert model.resource("rt_spoke_default").routes[0].next_hop_type == "VirtualAppliance"
        assert model.vnet("spoke").subnet("app").route_table_id == "rt_spoke_default"

    def test_impossible_cidrs_fall_back(self):
        """Out-of-range CIDRs are replaced, never raised."""
        model = normalize_model({"hub": {"id": "hub", "cidr": "10.0.0.0/40", "subnets": [{"id": "a"}]}})
        assert model.hub.cidr == "10.0.0.0/16"
        assert model.hub.subnet("a").cidr == "10.0.0.0/24"

    def test_numeric_ids(self):
        """Numeric ids from upstream are sanitized like any other."""
        model = normalize_model({"hub": {"id": 1, "cidr": "10.0.0.0/16", "subnets": [{"id": 2, "cidr": "10.0.1.0/24"}]}})
        assert model.hub.id == "1"
        assert model.hub.has_subnet("2")

    def test_capitalized_kinds(self):
        """Flat VNet kinds are matched case-insensitively."""
        raw = {"vnets": [{"id": "core", "kind": "Hub", "cidr": "10.0.0.0/16"}, {"id": "web", "kind": "Spoke", "cidr": "10.1.0.0/16"}]}
        model = normalize_model(raw)
        assert model.hub.id == "core"
        assert [s.id for s in model.spokes] == ["web"]


class TestInputErrors:
    """Tests for the input boundary."""

    def test_non_mapping_rejected(self):
        """Lists and scalars are not models."""
        with pytest.raises(ModelInputError):
            to_raw_model(["hub"])

    def test_wrong_scalar_type_rejected(self):
        """Values pydantic cannot coerce are reported."""
        with pytest.raises(ModelInputError):
            to_raw_model({"region": {"nested": True}})

    def test_load_yaml_file(self, tmp_path):
        """YAML files load into a RawModel."""
        path = tmp_path / "model.yaml"
        path.write_text("region: japaneast\nhub:\n  id: hub\n  cidr: 10.0.0.0/16\n")
        raw = load_model_file(path)
        assert raw.hub.id == "hub"

    def test_load_missing_file(self, tmp_path):
        """A missing file is an input error."""
        with pytest.raises(ModelInputError):
            load_model_file(tmp_path / "nope.json")

    def test_load_invalid_yaml(self, tmp_path):
        """Unparseable content is an input error."""
        path = tmp_path / "bad.yaml"
        path.write_text("hub: [unclosed\n")
        with pytest.raises(ModelInputError):
            load_model_file(path)
