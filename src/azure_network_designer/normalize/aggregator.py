"""Topology aggregator.

Folds the three upstream VNet shapes into one ordered VNet store, gives every
VNet, subnet and resource a safe unique id, and pushes the id changes through
every cross reference (peerings, subnet ids, DNS zone links, private endpoint
targets, NSG/route table/public IP references).
"""

from typing import Any, Optional

from pydantic import ValidationError

from ..config import RuntimeConfig
from ..core.logging import get_logger
from ..models.base import CIDRBlock
from ..models.resources import ResourceBase, ResourceKind, build_resource
from ..models.topology import FIX_PREFIX, RawModel, RawVNet, TopologyModel
from ..models.vnet import RESERVED_SUBNET_PURPOSES, Peering, Subnet, VNet
from .sanitizer import IdSession, id_safe
from .types import normalize_type

log = get_logger("aggregator")

DEFAULT_HUB_ID = "hub"
DEFAULT_HUB_CIDR = "10.0.0.0/16"

SUBNET_PURPOSES = {
    "public", "app", "data", "infra", "gateway", "bastion", "agw", "firewall"
}

# (camelCase, snake_case) spellings of attributes that hold a resource id
RESOURCE_REF_KEYS = [("pipId", "pip_id"), ("targetResourceId", "target_resource_id")]


def _get(data: dict, *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _remap(value: Any, mapping: dict[str, str]) -> str:
    """Resolve an id through ``mapping``; unresolved ids are kept, sanitized."""
    key = str(value)
    return mapping.get(key, id_safe(key))


def _fallback_subnet_cidr(vnet_cidr: str, index: int) -> str:
    net = CIDRBlock(cidr=vnet_cidr).network
    if net.prefixlen > 24:
        return str(net)
    for i, candidate in enumerate(net.subnets(new_prefix=24)):
        if i == index:
            return str(candidate)
    return str(net)


def _infer_purpose(subnet_id: str, declared: Optional[str]) -> str:
    if subnet_id in RESERVED_SUBNET_PURPOSES:
        return RESERVED_SUBNET_PURPOSES[subnet_id]
    if declared and declared.lower() in SUBNET_PURPOSES:
        return declared.lower()
    return "infra"


class TopologyAggregator:
    """One aggregation pass over a ``RawModel``."""

    def __init__(self, raw: RawModel, session: IdSession):
        self.raw = raw
        self.session = session
        self.vnet_map: dict[str, str] = {}
        self.subnet_map: dict[str, str] = {}
        self.resource_map: dict[str, str] = {}
        self.fixes: list[str] = []

    def _fix(self, message: str) -> None:
        log.info("fix: %s", message)
        self.fixes.append(message)

    # ---------- VNets ----------

    def _collect(self) -> list[tuple[RawVNet, str]]:
        """Pick the VNet source shape, tagging each VNet with its kind."""
        raw = self.raw
        if raw.vnets:
            log.debug("Using flat vnet list (%d vnets)", len(raw.vnets))
            return [
                (v, "hub" if (v.kind or "").strip().lower() == "hub" else "spoke")
                for v in raw.vnets
            ]
        hubs = raw.hubs or ([raw.hub] if raw.hub else [])
        log.debug("Using hub/spoke fields (%d hubs, %d spokes)", len(hubs), len(raw.spokes))
        return [(v, "hub") for v in hubs] + [(v, "spoke") for v in raw.spokes]

    def _build_vnets(self) -> list[VNet]:
        used: set[str] = set()
        vnets: list[VNet] = []
        for index, (raw_vnet, kind) in enumerate(self._collect()):
            vnet_id = self.session.claim(raw_vnet.id, used)
            if raw_vnet.id is not None:
                self.vnet_map.setdefault(str(raw_vnet.id), vnet_id)

            block = CIDRBlock.parse(raw_vnet.cidr)
            if block is not None:
                cidr = block.cidr
            else:
                cidr = DEFAULT_HUB_CIDR if index == 0 else f"10.{min(index, 254)}.0.0/16"
                self._fix(f"assigned address space {cidr} to vnet {vnet_id}")

            vnets.append(
                VNet(
                    id=vnet_id,
                    label=raw_vnet.label,
                    cidr=cidr,
                    kind=kind,
                    subnets=self._build_subnets(raw_vnet, vnet_id, cidr),
                )
            )

        if not any(v.kind == "hub" for v in vnets):
            hub_id = self.session.claim(DEFAULT_HUB_ID, used)
            vnets.insert(
                0, VNet(id=hub_id, label="Hub VNet", cidr=DEFAULT_HUB_CIDR, kind="hub")
            )
            log.warning("No hub in input, synthesized default hub %s", hub_id)
            self._fix(f"added default hub {hub_id} ({DEFAULT_HUB_CIDR})")
        return vnets

    def _build_subnets(self, raw_vnet: RawVNet, vnet_id: str, vnet_cidr: str) -> list[Subnet]:
        used: set[str] = set()
        subnets: list[Subnet] = []
        for index, raw_subnet in enumerate(raw_vnet.subnets):
            subnet_id = self.session.claim(raw_subnet.id, used)
            if raw_subnet.id is not None:
                self.subnet_map.setdefault(str(raw_subnet.id), subnet_id)

            block = CIDRBlock.parse(raw_subnet.cidr)
            if block is not None:
                cidr = block.cidr
            else:
                cidr = _fallback_subnet_cidr(vnet_cidr, index)
                self._fix(f"assigned {cidr} to subnet {subnet_id} in {vnet_id}")

            subnets.append(
                Subnet(
                    id=subnet_id,
                    label=raw_subnet.label,
                    cidr=cidr,
                    purpose=_infer_purpose(subnet_id, raw_subnet.purpose),
                    nsg_id=raw_subnet.nsg_id,
                    route_table_id=raw_subnet.route_table_id,
                )
            )
        return subnets

    # ---------- Peerings ----------

    def _build_peerings(self) -> list[Peering]:
        peerings = []
        for p in self.raw.peerings:
            peerings.append(
                Peering(
                    from_vnet_id=_remap(_get(p, "fromVnetId", "from_vnet_id") or "", self.vnet_map),
                    to_vnet_id=_remap(_get(p, "toVnetId", "to_vnet_id") or "", self.vnet_map),
                    allow_vnet_access=bool(_get(p, "allowVnetAccess", "allow_vnet_access")),
                    allow_forwarded_traffic=bool(
                        _get(p, "allowForwardedTraffic", "allow_forwarded_traffic")
                    ),
                    allow_gateway_transit=bool(
                        _get(p, "allowGatewayTransit", "allow_gateway_transit")
                    ),
                    use_remote_gateways=bool(
                        _get(p, "useRemoteGateways", "use_remote_gateways")
                    ),
                )
            )
        return peerings

    # ---------- Resources ----------

    def _dedupe_resources(self) -> list[tuple[ResourceKind, str, dict]]:
        """Normalize types and drop repeats of (type, label), first seen wins."""
        used: set[str] = set()
        seen: dict[tuple[ResourceKind, str], str] = {}
        kept = []
        for raw in self.raw.resources:
            kind = normalize_type(raw.get("type"))
            label = raw.get("label")
            key = (kind, str(label) if label is not None else "")
            if key in seen:
                if raw.get("id") is not None:
                    # references to the dropped copy follow the survivor
                    self.resource_map.setdefault(str(raw["id"]), seen[key])
                log.debug("Dropped duplicate %s %r", kind.value, label)
                continue
            resource_id = self.session.claim(raw.get("id"), used)
            seen[key] = resource_id
            if raw.get("id") is not None:
                self.resource_map.setdefault(str(raw["id"]), resource_id)
            kept.append((kind, resource_id, raw))
        return kept

    def _rewrite_refs(self, kind: ResourceKind, data: dict) -> dict:
        for keys in (("subnetId", "subnet_id"),):
            for key in keys:
                if data.get(key) is not None:
                    data[key] = _remap(data[key], self.subnet_map)
        for keys in RESOURCE_REF_KEYS:
            for key in keys:
                if data.get(key) is not None:
                    data[key] = _remap(data[key], self.resource_map)
        if kind == ResourceKind.PRIVATE_DNS_ZONE and isinstance(data.get("links"), list):
            data["links"] = [
                {"vnetId": _remap(_get(link, "vnetId", "vnet_id"), self.vnet_map)}
                for link in data["links"]
                if isinstance(link, dict) and _get(link, "vnetId", "vnet_id")
            ]
        return data

    def _coerce(self, kind: ResourceKind, data: dict) -> ResourceBase:
        """Build the typed resource, discarding attributes that do not fit."""
        try:
            return build_resource(kind, data)
        except ValidationError as e:
            bad = {err["loc"][0] for err in e.errors() if err["loc"]}
            bad.discard("id")
            log.debug("Discarding invalid %s attributes %s on %s", kind.value, sorted(map(str, bad)), data["id"])
            trimmed = {k: v for k, v in data.items() if k not in bad}
            try:
                return build_resource(kind, trimmed)
            except ValidationError:
                return build_resource(kind, {"id": data["id"]})

    def _build_resources(self) -> list[ResourceBase]:
        resources = []
        for kind, resource_id, raw in self._dedupe_resources():
            data = {k: v for k, v in raw.items() if k != "type"}
            data["id"] = resource_id
            resources.append(self._coerce(kind, self._rewrite_refs(kind, data)))
        return resources

    def _rewrite_subnet_refs(self, vnets: list[VNet]) -> None:
        for vnet in vnets:
            for subnet in vnet.subnets:
                if subnet.nsg_id is not None:
                    subnet.nsg_id = _remap(subnet.nsg_id, self.resource_map)
                if subnet.route_table_id is not None:
                    subnet.route_table_id = _remap(subnet.route_table_id, self.resource_map)

    def aggregate(self) -> TopologyModel:
        vnets = self._build_vnets()
        peerings = self._build_peerings()
        resources = self._build_resources()
        self._rewrite_subnet_refs(vnets)
        if self.raw.edges:
            log.debug("Discarding %d upstream edges", len(self.raw.edges))

        model = TopologyModel(
            region=self.raw.region or RuntimeConfig.get_default_region(),
            vnets=vnets,
            peerings=peerings,
            resources=resources,
            notes=list(self.raw.notes),
        )
        for fix in self.fixes:
            model.add_note(f"{FIX_PREFIX}{fix}")
        log.debug(
            "Aggregated %d hubs, %d spokes, %d resources",
            len(model.hubs),
            len(model.spokes),
            len(model.resources),
        )
        return model


def aggregate(raw: RawModel, session: IdSession) -> TopologyModel:
    """Fold ``raw`` into a canonical ``TopologyModel``."""
    return TopologyAggregator(raw, session).aggregate()
