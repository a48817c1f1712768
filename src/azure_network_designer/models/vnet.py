"""VNet-related Pydantic models."""

from typing import Optional, Literal
from pydantic import BaseModel, ConfigDict, Field

from .base import TopologyNode

SubnetPurpose = Literal[
    "public", "app", "data", "infra", "gateway", "bastion", "agw", "firewall"
]
VNetKind = Literal["hub", "spoke"]

# Azure reserves these subnet names for the matching platform service
GATEWAY_SUBNET = "GatewaySubnet"
FIREWALL_SUBNET = "AzureFirewallSubnet"
BASTION_SUBNET = "AzureBastionSubnet"
APP_GATEWAY_SUBNET = "AppGatewaySubnet"

RESERVED_SUBNET_PURPOSES: dict[str, SubnetPurpose] = {
    GATEWAY_SUBNET: "gateway",
    FIREWALL_SUBNET: "firewall",
    BASTION_SUBNET: "bastion",
    APP_GATEWAY_SUBNET: "agw",
}


class Subnet(TopologyNode):
    """Subnet inside a VNet."""

    cidr: str = Field(..., description="Subnet CIDR block")
    purpose: SubnetPurpose = Field(default="infra")
    nsg_id: Optional[str] = Field(None, alias="nsgId")
    route_table_id: Optional[str] = Field(None, alias="routeTableId")


class VNet(TopologyNode):
    """Hub or spoke virtual network."""

    cidr: str = Field(..., description="Address space, /16 scale")
    kind: VNetKind = Field(default="spoke")
    subnets: list[Subnet] = Field(default_factory=list)

    def subnet(self, subnet_id: str) -> Optional[Subnet]:
        return next((s for s in self.subnets if s.id == subnet_id), None)

    def has_subnet(self, subnet_id: str) -> bool:
        return self.subnet(subnet_id) is not None


class Peering(BaseModel):
    """One direction of a VNet peering."""

    model_config = ConfigDict(populate_by_name=True)

    from_vnet_id: str = Field(..., alias="fromVnetId")
    to_vnet_id: str = Field(..., alias="toVnetId")
    allow_vnet_access: bool = Field(default=False, alias="allowVnetAccess")
    allow_forwarded_traffic: bool = Field(default=False, alias="allowForwardedTraffic")
    allow_gateway_transit: bool = Field(default=False, alias="allowGatewayTransit")
    use_remote_gateways: bool = Field(default=False, alias="useRemoteGateways")
