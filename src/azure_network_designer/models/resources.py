"""Azure resource Pydantic models.

Every resource kind is its own model; ``Resource`` is the tagged union over
them, discriminated on ``type``.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from .base import TopologyNode


class ResourceKind(str, Enum):
    """Closed set of canonical resource kinds."""

    APPLICATION_GATEWAY = "ApplicationGateway"
    AZURE_FIREWALL = "AzureFirewall"
    VPN_GATEWAY = "VpnGateway"
    EXPRESS_ROUTE_GATEWAY = "ExpressRouteGateway"
    BASTION = "Bastion"
    APP_SERVICE = "AppService"
    SQL_DB = "SqlDb"
    STORAGE = "Storage"
    KEY_VAULT = "KeyVault"
    PRIVATE_ENDPOINT = "PrivateEndpoint"
    PRIVATE_DNS_ZONE = "PrivateDnsZone"
    NETWORK_SECURITY_GROUP = "NetworkSecurityGroup"
    ROUTE_TABLE = "RouteTable"
    PUBLIC_IP = "PublicIP"
    TRAFFIC_MANAGER = "TrafficManager"

    def __str__(self) -> str:
        return self.value


class ResourceBase(TopologyNode):
    """Fields shared by every resource."""

    type: str
    subnet_id: Optional[str] = Field(None, alias="subnetId")


class NsgRule(BaseModel):
    """Network security group rule."""

    name: str
    priority: int
    direction: Literal["Inbound", "Outbound"]
    access: Literal["Allow", "Deny"]
    protocol: Literal["*", "Tcp", "Udp"] = "*"
    source: str = "*"
    destination: str = "*"
    port: Optional[str] = None


class Route(BaseModel):
    """Route table entry."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    address_prefix: str = Field(..., alias="addressPrefix")
    next_hop_type: Literal[
        "Internet", "VirtualAppliance", "VirtualNetworkGateway", "VnetLocal", "None"
    ] = Field(..., alias="nextHopType")
    next_hop_ip_address: Optional[str] = Field(None, alias="nextHopIpAddress")


class DnsZoneLink(BaseModel):
    """Private DNS zone link to a VNet."""

    model_config = ConfigDict(populate_by_name=True)

    vnet_id: str = Field(..., alias="vnetId")


class ApplicationGateway(ResourceBase):
    type: Literal["ApplicationGateway"] = "ApplicationGateway"
    waf: bool = True
    zone_redundant: Optional[bool] = Field(None, alias="zoneRedundant")
    pip_id: Optional[str] = Field(None, alias="pipId")


class AzureFirewall(ResourceBase):
    type: Literal["AzureFirewall"] = "AzureFirewall"
    policy_id: Optional[str] = Field(None, alias="policyId")
    pip_id: Optional[str] = Field(None, alias="pipId")


class VpnGateway(ResourceBase):
    type: Literal["VpnGateway"] = "VpnGateway"
    sku: Optional[str] = Field(None, description="VpnGw1..3, optionally AZ")
    active_active: Optional[bool] = Field(None, alias="activeActive")


class ExpressRouteGateway(ResourceBase):
    type: Literal["ExpressRouteGateway"] = "ExpressRouteGateway"
    sku: Optional[str] = Field(None, description="ErGw1AZ..ErGw3AZ")


class Bastion(ResourceBase):
    type: Literal["Bastion"] = "Bastion"
    pip_id: Optional[str] = Field(None, alias="pipId")


class AppService(ResourceBase):
    type: Literal["AppService"] = "AppService"
    sku: str = "P1v3"
    instances: int = 1
    plan_name: Optional[str] = Field(None, alias="planName")


class SqlDb(ResourceBase):
    type: Literal["SqlDb"] = "SqlDb"
    tier: Literal["GP", "BC"] = "GP"
    zone_redundant: Optional[bool] = Field(None, alias="zoneRedundant")
    server_name: Optional[str] = Field(None, alias="serverName")


class Storage(ResourceBase):
    type: Literal["Storage"] = "Storage"
    redundancy: Literal["LRS", "ZRS", "GZRS"] = "LRS"


class KeyVault(ResourceBase):
    type: Literal["KeyVault"] = "KeyVault"
    private_endpoint: Optional[bool] = Field(None, alias="privateEndpoint")


class PrivateEndpoint(ResourceBase):
    type: Literal["PrivateEndpoint"] = "PrivateEndpoint"
    target_resource_type: str = Field(default="", alias="targetResourceType")
    target_resource_id: Optional[str] = Field(None, alias="targetResourceId")


class PrivateDnsZone(ResourceBase):
    type: Literal["PrivateDnsZone"] = "PrivateDnsZone"
    zone_name: str = Field(default="", alias="zoneName")
    links: list[DnsZoneLink] = Field(default_factory=list)


class NetworkSecurityGroup(ResourceBase):
    type: Literal["NetworkSecurityGroup"] = "NetworkSecurityGroup"
    rules: list[NsgRule] = Field(default_factory=list)


class RouteTable(ResourceBase):
    type: Literal["RouteTable"] = "RouteTable"
    routes: list[Route] = Field(default_factory=list)


class PublicIP(ResourceBase):
    type: Literal["PublicIP"] = "PublicIP"
    sku: Optional[Literal["Basic", "Standard"]] = None
    allocation: Optional[Literal["Static", "Dynamic"]] = None


class TrafficManager(ResourceBase):
    type: Literal["TrafficManager"] = "TrafficManager"


Resource = Annotated[
    Union[
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
    ],
    Field(discriminator="type"),
]

RESOURCE_CLASSES: dict[ResourceKind, type[ResourceBase]] = {
    ResourceKind.APPLICATION_GATEWAY: ApplicationGateway,
    ResourceKind.AZURE_FIREWALL: AzureFirewall,
    ResourceKind.VPN_GATEWAY: VpnGateway,
    ResourceKind.EXPRESS_ROUTE_GATEWAY: ExpressRouteGateway,
    ResourceKind.BASTION: Bastion,
    ResourceKind.APP_SERVICE: AppService,
    ResourceKind.SQL_DB: SqlDb,
    ResourceKind.STORAGE: Storage,
    ResourceKind.KEY_VAULT: KeyVault,
    ResourceKind.PRIVATE_ENDPOINT: PrivateEndpoint,
    ResourceKind.PRIVATE_DNS_ZONE: PrivateDnsZone,
    ResourceKind.NETWORK_SECURITY_GROUP: NetworkSecurityGroup,
    ResourceKind.ROUTE_TABLE: RouteTable,
    ResourceKind.PUBLIC_IP: PublicIP,
    ResourceKind.TRAFFIC_MANAGER: TrafficManager,
}


def build_resource(kind: ResourceKind, data: dict[str, Any]) -> ResourceBase:
    """Instantiate the typed model for ``kind`` from loose attributes."""
    cls = RESOURCE_CLASSES[kind]
    return cls.model_validate({**data, "type": kind.value})
