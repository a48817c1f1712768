"""Azure invariant enforcement.

Inserts the companion subnets and resources a requested feature needs in
order to be coherent, and reports what it did. Headline resources (VPN
gateway, firewall, bastion, application gateway) are expected from the
template layer; when one is missing the enforcer warns instead of creating
it.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..core.logging import get_logger
from ..models.flags import RequestedFeatures
from ..models.resources import (
    PrivateDnsZone,
    PrivateEndpoint,
    PublicIP,
    ResourceBase,
    ResourceKind,
    Route,
    RouteTable,
)
from ..models.topology import TopologyModel
from ..models.vnet import (
    APP_GATEWAY_SUBNET,
    BASTION_SUBNET,
    FIREWALL_SUBNET,
    GATEWAY_SUBNET,
    RESERVED_SUBNET_PURPOSES,
    Subnet,
    VNet,
)

log = get_logger("invariants")

GATEWAY_SUBNET_CIDR = "10.0.0.32/27"
FIREWALL_SUBNET_CIDR = "10.0.1.0/26"
BASTION_SUBNET_CIDR = "10.0.1.64/26"
APP_GATEWAY_SUBNET_CIDR = "10.1.3.0/24"

FIREWALL_PLACEHOLDER_IP = "10.0.1.4"
DEFAULT_ROUTE_PREFIX = "0.0.0.0/0"

APP_GATEWAY_PIP_ID = "pip_agw"

# (feature attribute, target kind, DNS zone, endpoint id)
PRIVATE_ENDPOINT_TARGETS = [
    ("sql", ResourceKind.SQL_DB, "privatelink.database.windows.net", "pe_sql"),
    ("storage", ResourceKind.STORAGE, "privatelink.blob.core.windows.net", "pe_st"),
    ("key_vault", ResourceKind.KEY_VAULT, "privatelink.vaultcore.azure.net", "pe_kv"),
]

# keyword in a private endpoint's declared target type -> target kind
PRIVATE_ENDPOINT_KEYWORDS = [
    ("sql", ResourceKind.SQL_DB),
    ("storage", ResourceKind.STORAGE),
    ("key", ResourceKind.KEY_VAULT),
]


def private_endpoint_target_kind(endpoint: ResourceBase) -> Optional[ResourceKind]:
    """Kind a private endpoint points at, from its declared target type."""
    declared = str(getattr(endpoint, "target_resource_type", "") or "").lower()
    return next((kind for word, kind in PRIVATE_ENDPOINT_KEYWORDS if word in declared), None)


def _is_app_gateway_pip(pip: ResourceBase) -> bool:
    text = f"{pip.id} {pip.label or ''}".lower()
    return any(word in text for word in ("agw", "appgw", "app gateway"))


def dns_zone_id(zone_name: str) -> str:
    return "pdz_" + zone_name.replace(".", "_")


def _default_route() -> Route:
    return Route(
        name="defaultToFW",
        address_prefix=DEFAULT_ROUTE_PREFIX,
        next_hop_type="VirtualAppliance",
        next_hop_ip_address=FIREWALL_PLACEHOLDER_IP,
    )


@dataclass
class InvariantResult:
    """Audit trail of one enforcement pass."""

    fixes: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def extend(self, other: "InvariantResult") -> None:
        self.fixes.extend(other.fixes)
        self.warnings.extend(other.warnings)


class InvariantEnforcer:
    """Enforce the feature invariants on a model in place."""

    def __init__(self, model: TopologyModel, features: RequestedFeatures):
        self.model = model
        self.features = features
        self.result = InvariantResult()

    def _fix(self, message: str) -> None:
        log.info("fix: %s", message)
        self.result.fixes.append(message)

    def _warn(self, message: str) -> None:
        log.warning("%s", message)
        self.result.warnings.append(message)

    def _add_resource(self, resource: ResourceBase) -> None:
        self.model.resources.append(resource)
        self._fix(f"added resource {resource.type}({resource.id})")

    # ---------- Subnets ----------

    def _ensure_subnet(self, vnet: VNet, subnet_id: str, cidr: str) -> bool:
        """Add ``subnet_id`` to ``vnet`` if missing. True when added."""
        if vnet.has_subnet(subnet_id):
            return False
        vnet.subnets.append(
            Subnet(id=subnet_id, cidr=cidr, purpose=RESERVED_SUBNET_PURPOSES[subnet_id])
        )
        self._fix(f"added subnet {subnet_id} in {vnet.kind} {vnet.id} ({cidr})")
        return True

    def _ensure_hub_subnet(self, subnet_id: str, cidr: str) -> None:
        for hub in self.model.hubs:
            self._ensure_subnet(hub, subnet_id, cidr)

    def _check_gateway(self) -> None:
        f = self.features
        if f.vpn or f.express_route:
            self._ensure_hub_subnet(GATEWAY_SUBNET, GATEWAY_SUBNET_CIDR)
        if f.vpn and not self.model.has(ResourceKind.VPN_GATEWAY):
            self._warn("VPN requested but VpnGateway missing")
        if f.express_route and not self.model.has(ResourceKind.EXPRESS_ROUTE_GATEWAY):
            self._warn("ExpressRoute requested but ExpressRouteGateway missing")

    def _check_firewall(self) -> None:
        if not self.features.firewall:
            return
        self._ensure_hub_subnet(FIREWALL_SUBNET, FIREWALL_SUBNET_CIDR)
        if not self.model.has(ResourceKind.AZURE_FIREWALL):
            self._warn(
                "Firewall requested but AzureFirewall missing (consider adding PIP and UDR)"
            )

    def _check_bastion(self) -> None:
        if not self.features.bastion:
            return
        self._ensure_hub_subnet(BASTION_SUBNET, BASTION_SUBNET_CIDR)
        if not self.model.has(ResourceKind.BASTION):
            self._warn("Bastion requested but resource missing")

    def _check_waf(self) -> None:
        if not self.features.waf:
            return
        for spoke in self.model.spokes:
            self._ensure_subnet(spoke, APP_GATEWAY_SUBNET, APP_GATEWAY_SUBNET_CIDR)
            if spoke.subnet(APP_GATEWAY_SUBNET).cidr == APP_GATEWAY_SUBNET_CIDR:
                self._warn(
                    f"{APP_GATEWAY_SUBNET} in {spoke.id} uses default CIDR "
                    f"{APP_GATEWAY_SUBNET_CIDR}; review address plan"
                )
        if not self.model.has(ResourceKind.APPLICATION_GATEWAY):
            self._warn("WAF requested but ApplicationGateway missing")

    # ---------- Private endpoints ----------

    def _endpoint_subnet_id(self) -> Optional[str]:
        for spoke in self.model.spokes:
            for subnet in spoke.subnets:
                if subnet.purpose == "data":
                    return subnet.id
        return None

    def _existing_endpoint(self, kind: ResourceKind, endpoint_id: str, target: ResourceBase) -> bool:
        """True when an endpoint for ``kind`` is already present.

        An untyped endpoint holding the well-known id is adopted for ``kind``.
        """
        endpoints = self.model.resources_of(ResourceKind.PRIVATE_ENDPOINT)
        if any(private_endpoint_target_kind(pe) == kind for pe in endpoints):
            return True
        named = self.model.resource(endpoint_id)
        if named is None or named.type != ResourceKind.PRIVATE_ENDPOINT:
            return False
        if private_endpoint_target_kind(named) is not None:
            return False
        named.target_resource_type = kind.value
        named.target_resource_id = named.target_resource_id or target.id
        self._fix(f"set target of PrivateEndpoint {named.id} to {kind.value}")
        return True

    def _existing_zone(self, zone_name: str) -> Optional[ResourceBase]:
        """The zone for ``zone_name``, matched on zone name, label or id."""
        wanted_id = dns_zone_id(zone_name)
        for zone in self.model.resources_of(ResourceKind.PRIVATE_DNS_ZONE):
            if zone_name in (zone.zone_name, (zone.label or "").strip().lower()) or zone.id == wanted_id:
                if not zone.zone_name:
                    zone.zone_name = zone_name
                    self._fix(f"set zone name {zone_name} on PrivateDnsZone {zone.id}")
                return zone
        return None

    def _check_private_endpoints(self) -> None:
        """Endpoints and DNS zones for every requested target that exists.

        The standing DNS warning is raised when a target exists, or when more
        than one target is requested. A single request whose target is absent
        adds nothing at all.
        """
        targets = self.features.private_endpoints
        requested = 0
        effective = 0
        for attr, kind, zone_name, endpoint_id in PRIVATE_ENDPOINT_TARGETS:
            if not getattr(targets, attr):
                continue
            requested += 1
            target = self.model.first_of(kind)
            if target is None:
                log.debug("Private endpoint for %s requested but no target exists", kind.value)
                continue
            effective += 1

            if not self._existing_endpoint(kind, endpoint_id, target):
                self._add_resource(
                    PrivateEndpoint(
                        id=self.model.free_resource_id(endpoint_id),
                        label=f"PE → {kind.value}",
                        target_resource_type=kind.value,
                        target_resource_id=target.id,
                        subnet_id=self._endpoint_subnet_id(),
                    )
                )

            if self._existing_zone(zone_name) is None:
                self.model.resources.append(
                    PrivateDnsZone(
                        id=self.model.free_resource_id(dns_zone_id(zone_name)),
                        label=zone_name,
                        zone_name=zone_name,
                    )
                )
                self._fix(f"added PrivateDnsZone {zone_name}")

        if effective or requested > 1:
            self._warn(
                "Private Endpoint uses require Private DNS zones and zone links to VNets."
            )

    # ---------- Edge-adjacent ----------

    def _default_route_table(self, rt_id: Optional[str]) -> Optional[RouteTable]:
        rt = self.model.resource(rt_id) if rt_id else None
        if rt is None or rt.type != ResourceKind.ROUTE_TABLE:
            return None
        for route in rt.routes:
            if (
                route.address_prefix == DEFAULT_ROUTE_PREFIX
                and route.next_hop_type == "VirtualAppliance"
            ):
                return rt
        return None

    def _spoke_route_table(self, spoke: VNet) -> RouteTable:
        """The spoke's firewall route table, reused, completed or created."""
        for subnet in spoke.subnets:
            rt = self._default_route_table(subnet.route_table_id)
            if rt is not None:
                return rt

        rt_id = f"rt_{spoke.id}_default"
        named = self.model.resource(rt_id)
        if named is not None and named.type == ResourceKind.ROUTE_TABLE:
            if self._default_route_table(rt_id) is None:
                named.routes.append(_default_route())
                self._fix(f"added default route to Firewall in RouteTable {rt_id}")
            return named

        rt = RouteTable(
            id=self.model.free_resource_id(rt_id),
            label=f"RT {spoke.label or spoke.id} → FW",
            routes=[_default_route()],
        )
        self.model.resources.append(rt)
        self._fix(f"added RouteTable {rt.id} for default route to Firewall")
        return rt

    def _check_route_tables(self) -> None:
        if not self.features.firewall:
            return
        for spoke in self.model.spokes:
            rt = self._spoke_route_table(spoke)
            for subnet in spoke.subnets:
                if subnet.purpose not in ("app", "data"):
                    continue
                if self._default_route_table(subnet.route_table_id) is None:
                    subnet.route_table_id = rt.id
                    self._fix(f"attached RouteTable {rt.id} to subnet {subnet.id} in {spoke.id}")

        self._warn(
            f"UDR next hop {FIREWALL_PLACEHOLDER_IP} is a placeholder; "
            "set it to the Firewall private IP"
        )

    def _check_app_gateway_pip(self) -> None:
        """One Standard static PIP per Application Gateway.

        A gateway without a PIP adopts a spare PIP labelled for App Gateway,
        else gets a new one. Labelled PIPs nothing references are dropped.
        """
        gateways = self.model.resources_of(ResourceKind.APPLICATION_GATEWAY)
        if not gateways:
            return
        referenced = {r.pip_id for r in self.model.resources if getattr(r, "pip_id", None)}
        spare = [
            pip
            for pip in self.model.resources_of(ResourceKind.PUBLIC_IP)
            if pip.id not in referenced and _is_app_gateway_pip(pip)
        ]

        for gateway in gateways:
            pip = self.model.resource(gateway.pip_id) if gateway.pip_id else None
            if pip is not None and pip.type == ResourceKind.PUBLIC_IP:
                if pip.sku != "Standard" or pip.allocation != "Static":
                    pip.sku = "Standard"
                    pip.allocation = "Static"
                    self._fix(f"set PublicIP {pip.id} to Standard SKU with static allocation")
                continue
            if spare:
                pip = spare.pop(0)
                pip.sku = "Standard"
                pip.allocation = "Static"
                self._fix(f"attached PublicIP {pip.id} to ApplicationGateway {gateway.id}")
            else:
                pip = PublicIP(
                    id=self.model.free_resource_id(APP_GATEWAY_PIP_ID),
                    label="PIP (AppGW)",
                    sku="Standard",
                    allocation="Static",
                )
                self._add_resource(pip)
            gateway.pip_id = pip.id

        for pip in spare:
            self.model.resources.remove(pip)
            self._fix(f"removed unused App Gateway PublicIP {pip.id}")

    # ---------- Phases ----------

    def enforce_prerequisites(self) -> InvariantResult:
        """Subnets, private endpoints and DNS zones."""
        self._check_gateway()
        self._check_firewall()
        self._check_bastion()
        self._check_waf()
        self._check_private_endpoints()
        return self.result

    def enforce_edge_adjacent(self) -> InvariantResult:
        """Route tables and public IPs that depend on the wired topology."""
        self._check_route_tables()
        self._check_app_gateway_pip()
        return self.result

    def enforce(self) -> InvariantResult:
        self.enforce_prerequisites()
        self.enforce_edge_adjacent()
        return self.result


def enforce(model: TopologyModel, features: RequestedFeatures) -> InvariantResult:
    """Run every invariant on ``model`` in place."""
    return InvariantEnforcer(model, features).enforce()
