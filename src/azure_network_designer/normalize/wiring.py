"""Auto-wiring: rebuild every edge from the resources present."""

from typing import Optional

from ..core.logging import get_logger
from ..models.resources import ResourceKind
from ..models.topology import Edge, EdgeKind, TopologyModel
from .invariants import private_endpoint_target_kind

log = get_logger("wiring")

ON_PREMISES_ID = "onprem"


def add_edge(
    model: TopologyModel,
    source: Optional[str],
    target: Optional[str],
    kind: EdgeKind = "l7",
) -> bool:
    """Append an edge unless an endpoint is missing or the pair already exists."""
    if not source or not target:
        return False
    if any(e.source == source and e.target == target for e in model.edges):
        return False
    model.edges.append(Edge(source=source, target=target, kind=kind))
    return True


def entry_point(model: TopologyModel) -> Optional[str]:
    """Public entry of the application: App Gateway if present, else App Service."""
    first = model.first_of(ResourceKind.APPLICATION_GATEWAY) or model.first_of(
        ResourceKind.APP_SERVICE
    )
    return first.id if first else None


def _resolve_endpoint_target(model: TopologyModel, endpoint) -> Optional[str]:
    kind = private_endpoint_target_kind(endpoint)
    if kind is None:
        return None
    declared = model.resource(endpoint.target_resource_id) if endpoint.target_resource_id else None
    if declared is not None and declared.type == kind:
        return declared.id
    fallback = model.first_of(kind)
    return fallback.id if fallback else None


def rewire(model: TopologyModel) -> None:
    """Replace ``model.edges`` with edges derived from resource presence."""
    if model.edges:
        log.debug("Discarding %d existing edges", len(model.edges))
    model.edges = []

    def first(kind: ResourceKind) -> Optional[str]:
        r = model.first_of(kind)
        return r.id if r else None

    agw = first(ResourceKind.APPLICATION_GATEWAY)
    app = first(ResourceKind.APP_SERVICE)
    sql = first(ResourceKind.SQL_DB)
    st = first(ResourceKind.STORAGE)
    kv = first(ResourceKind.KEY_VAULT)
    afw = first(ResourceKind.AZURE_FIREWALL)
    vpn = first(ResourceKind.VPN_GATEWAY)
    tm = first(ResourceKind.TRAFFIC_MANAGER)
    entry = agw or app

    # L7: application tier
    add_edge(model, agw, app, "l7")
    add_edge(model, app, sql, "l7")
    add_edge(model, app, st, "l7")
    add_edge(model, app, kv, "l7")

    for pe in model.resources_of(ResourceKind.PRIVATE_ENDPOINT):
        target = _resolve_endpoint_target(model, pe)
        if target is None:
            log.debug("Private endpoint %s has no resolvable target", pe.id)
        add_edge(model, pe.id, target, "l7")

    if tm:
        add_edge(model, tm, entry, "l7")

    # L3: network path
    add_edge(model, afw, entry, "l3")
    if vpn:
        add_edge(model, ON_PREMISES_ID, vpn, "l3")
        if afw:
            add_edge(model, vpn, afw, "l3")
        add_edge(model, afw or vpn, entry, "l3")

    log.debug("Wired %d edges", len(model.edges))
