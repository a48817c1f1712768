"""Disaster-recovery cloning into a secondary region.

Approximates a paired region by cloning the primary hub, the first spoke and
the workload resources with shifted address spaces and suffixed ids.
"""

from ipaddress import ip_network
from typing import Optional

from ..core.logging import get_logger
from ..models.resources import ResourceBase, ResourceKind, TrafficManager
from ..models.topology import TopologyModel
from ..models.vnet import RESERVED_SUBNET_PURPOSES, VNet
from .wiring import add_edge

log = get_logger("dr")

DR_SUFFIX = "_dr"
CIDR_OCTET_SHIFT = 2
MAX_OCTET = 254
TRAFFIC_MANAGER_ID = "tm"

CLONEABLE_KINDS = {
    kind.value
    for kind in (
        ResourceKind.APPLICATION_GATEWAY,
        ResourceKind.AZURE_FIREWALL,
        ResourceKind.APP_SERVICE,
        ResourceKind.SQL_DB,
        ResourceKind.STORAGE,
        ResourceKind.KEY_VAULT,
        ResourceKind.PRIVATE_ENDPOINT,
        ResourceKind.NETWORK_SECURITY_GROUP,
        ResourceKind.ROUTE_TABLE,
        ResourceKind.PUBLIC_IP,
    )
}


def shift_cidr(cidr: str, shift: int = CIDR_OCTET_SHIFT) -> str:
    """Move ``cidr`` up by ``shift`` in the second octet, capped at 254.

    Applied with the same shift to a VNet and its subnets, so cloned subnets
    stay inside the cloned address space. Unparseable input is returned as is.
    """
    try:
        net = ip_network(cidr, strict=False)
    except ValueError:
        return cidr
    if net.version != 4:
        return cidr
    octets = str(net.network_address).split(".")
    octets[1] = str(min(MAX_OCTET, int(octets[1]) + shift))
    return f"{'.'.join(octets)}/{net.prefixlen}"


class DisasterRecoveryCloner:
    """Clone the primary region of ``model`` into ``dr_region``."""

    def __init__(self, model: TopologyModel, dr_region: str, suffix: str = DR_SUFFIX):
        self.model = model
        self.dr_region = dr_region
        self.suffix = suffix
        self.tag = suffix.strip("_").upper()
        self.id_map: dict[str, str] = {}
        self.subnet_map: dict[str, str] = {}

    def _is_clone(self, node_id: str) -> bool:
        return node_id.endswith(self.suffix)

    def _clone_subnet_id(self, subnet_id: str) -> str:
        # Azure only recognises the reserved subnets under their exact name
        if subnet_id in RESERVED_SUBNET_PURPOSES:
            return subnet_id
        return f"{subnet_id}{self.suffix}"

    def _clone_label(self, label: Optional[str], fallback: str) -> str:
        return f"{label or fallback} {self.tag}"

    def _clone_resources(self) -> None:
        existing = {r.id for r in self.model.resources}
        originals = [
            r for r in self.model.resources
            if r.type in CLONEABLE_KINDS and not self._is_clone(r.id)
        ]
        for r in originals:
            self.id_map[r.id] = f"{r.id}{self.suffix}"

        for r in originals:
            clone_id = self.id_map[r.id]
            if clone_id in existing:
                continue
            clone = r.model_copy(deep=True)
            clone.id = clone_id
            clone.label = self._clone_label(r.label, r.id)
            if r.type == ResourceKind.PRIVATE_ENDPOINT and clone.target_resource_id:
                clone.target_resource_id = self.id_map.get(
                    clone.target_resource_id, clone.target_resource_id
                )
            if clone.subnet_id:
                clone.subnet_id = self.subnet_map.get(clone.subnet_id, clone.subnet_id)
            if getattr(clone, "pip_id", None):
                clone.pip_id = self.id_map.get(clone.pip_id, clone.pip_id)
            self.model.resources.append(clone)
            log.debug("Cloned %s %s -> %s", r.type, r.id, clone_id)

    def _clone_vnet(self, vnet: VNet) -> Optional[VNet]:
        clone_id = f"{vnet.id}{self.suffix}"
        self.id_map[vnet.id] = clone_id
        if self.model.vnet(clone_id) is not None:
            return None
        clone = vnet.model_copy(deep=True)
        clone.id = clone_id
        clone.label = self._clone_label(
            vnet.label, "Hub VNet" if vnet.kind == "hub" else "Spoke"
        )
        clone.cidr = shift_cidr(vnet.cidr)
        for subnet in clone.subnets:
            subnet.id = self._clone_subnet_id(subnet.id)
            subnet.cidr = shift_cidr(subnet.cidr)
            if subnet.nsg_id:
                subnet.nsg_id = self.id_map.get(subnet.nsg_id, subnet.nsg_id)
            if subnet.route_table_id:
                subnet.route_table_id = self.id_map.get(
                    subnet.route_table_id, subnet.route_table_id
                )
        self.model.vnets.append(clone)
        log.debug("Cloned vnet %s -> %s (%s)", vnet.id, clone_id, clone.cidr)
        return clone

    def _clone_peerings(self) -> None:
        existing = {(p.from_vnet_id, p.to_vnet_id) for p in self.model.peerings}
        for p in list(self.model.peerings):
            if p.from_vnet_id not in self.id_map or p.to_vnet_id not in self.id_map:
                continue
            pair = (self.id_map[p.from_vnet_id], self.id_map[p.to_vnet_id])
            if pair in existing:
                continue
            self.model.peerings.append(
                p.model_copy(update={"from_vnet_id": pair[0], "to_vnet_id": pair[1]})
            )
            existing.add(pair)

    def clone(self) -> bool:
        """Clone once per model. Returns False when a clone already exists."""
        note = f"DR across {self.model.region} and {self.dr_region}."
        if note not in self.model.notes:
            self.model.add_note(note)

        hub = self.model.hub
        if hub is None or self.model.vnet(f"{hub.id}{self.suffix}") is not None:
            log.debug("DR region %s already present, skipping clone", self.dr_region)
            return False
        spoke = next((s for s in self.model.spokes if not self._is_clone(s.id)), None)
        vnets = [v for v in (hub, spoke) if v is not None]
        for vnet in vnets:
            for subnet in vnet.subnets:
                self.subnet_map.setdefault(subnet.id, self._clone_subnet_id(subnet.id))

        self._clone_resources()
        for vnet in vnets:
            self._clone_vnet(vnet)
        self._clone_peerings()
        self.model.add_note(
            f"(approx) Secondary hub {hub.id}{self.suffix} in {self.dr_region}."
        )
        log.info("Cloned primary region into %s", self.dr_region)
        return True


def ensure_traffic_manager(model: TopologyModel) -> Optional[str]:
    """Add the singleton Traffic Manager if missing. Returns the new id, if any."""
    if model.has(ResourceKind.TRAFFIC_MANAGER):
        return None
    tm_id = model.free_resource_id(TRAFFIC_MANAGER_ID)
    model.resources.append(TrafficManager(id=tm_id, label="Traffic Manager"))
    log.info("Added Traffic Manager %s", tm_id)
    return tm_id


def _entry_points(model: TopologyModel, suffix: str) -> tuple[Optional[ResourceBase], Optional[ResourceBase]]:
    """(primary, cloned) entry resources: App Gateway, else App Service."""
    for kind in (ResourceKind.APPLICATION_GATEWAY, ResourceKind.APP_SERVICE):
        candidates = model.resources_of(kind)
        if not candidates:
            continue
        primary = next((r for r in candidates if not r.id.endswith(suffix)), None)
        cloned = next((r for r in candidates if r.id.endswith(suffix)), None)
        return primary, cloned
    return None, None


def wire_traffic_manager(model: TopologyModel, suffix: str = DR_SUFFIX) -> None:
    """Point Traffic Manager at both regional entry points."""
    tm = model.first_of(ResourceKind.TRAFFIC_MANAGER)
    if tm is None:
        return
    primary, cloned = _entry_points(model, suffix)
    for entry in (primary, cloned):
        if entry is not None:
            add_edge(model, tm.id, entry.id, "l7")
