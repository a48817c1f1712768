"""Pydantic models for Azure Network Designer."""

from .base import CIDRBlock, TopologyNode
from .vnet import (
    Subnet,
    VNet,
    Peering,
    SubnetPurpose,
    GATEWAY_SUBNET,
    FIREWALL_SUBNET,
    BASTION_SUBNET,
    APP_GATEWAY_SUBNET,
)
from .resources import (
    ResourceKind,
    ResourceBase,
    Resource,
    NsgRule,
    Route,
    DnsZoneLink,
    ApplicationGateway,
    AzureFirewall,
    VpnGateway,
    ExpressRouteGateway,
    Bastion,
    AppService,
    SqlDb,
    Storage,
    KeyVault,
    PrivateEndpoint,
    PrivateDnsZone,
    NetworkSecurityGroup,
    RouteTable,
    PublicIP,
    TrafficManager,
    build_resource,
)
from .topology import Edge, TopologyModel, RawModel, RawVNet, RawSubnet
from .flags import RequirementFlags, RequestedFeatures, PrivateEndpointTargets

__all__ = [
    "CIDRBlock",
    "TopologyNode",
    "Subnet",
    "VNet",
    "Peering",
    "SubnetPurpose",
    "GATEWAY_SUBNET",
    "FIREWALL_SUBNET",
    "BASTION_SUBNET",
    "APP_GATEWAY_SUBNET",
    "ResourceKind",
    "ResourceBase",
    "Resource",
    "NsgRule",
    "Route",
    "DnsZoneLink",
    "ApplicationGateway",
    "AzureFirewall",
    "VpnGateway",
    "ExpressRouteGateway",
    "Bastion",
    "AppService",
    "SqlDb",
    "Storage",
    "KeyVault",
    "PrivateEndpoint",
    "PrivateDnsZone",
    "NetworkSecurityGroup",
    "RouteTable",
    "PublicIP",
    "TrafficManager",
    "build_resource",
    "Edge",
    "TopologyModel",
    "RawModel",
    "RawVNet",
    "RawSubnet",
    "RequirementFlags",
    "RequestedFeatures",
    "PrivateEndpointTargets",
]
