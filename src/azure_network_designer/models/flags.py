"""Requirement flags produced by the prompt parser."""

from dataclasses import dataclass, field
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class RequirementFlags(BaseModel):
    """What the requester asked for."""

    model_config = ConfigDict(populate_by_name=True)

    region: Optional[str] = Field(None, description="Primary Azure region")
    vpn: bool = False
    waf: bool = False
    firewall: bool = False
    bastion: bool = False
    express_route_ready: bool = Field(default=False, alias="expressRouteReady")
    app_service_sku: Optional[str] = Field(None, alias="appServiceSku")
    app_instances: Optional[int] = Field(None, alias="appInstances")
    storage_redundancy: Optional[Literal["LRS", "ZRS", "GZRS"]] = Field(
        None, alias="storageRedundancy"
    )
    sql_tier: Optional[Literal["GP", "BC"]] = Field(None, alias="sqlTier")
    private_endpoint_sql: bool = Field(default=False, alias="privateEndpointSql")
    private_endpoint_storage: bool = Field(
        default=False, alias="privateEndpointStorage"
    )
    private_endpoint_key_vault: bool = Field(
        default=False, alias="privateEndpointKeyVault"
    )
    dr_region: Optional[str] = Field(None, alias="drRegion")
    traffic_manager: bool = Field(default=False, alias="trafficManager")

    def features(self) -> "RequestedFeatures":
        return RequestedFeatures.from_flags(self)


@dataclass(frozen=True)
class PrivateEndpointTargets:
    """Services that should be reached over Private Endpoints."""

    sql: bool = False
    storage: bool = False
    key_vault: bool = False

    def any(self) -> bool:
        return self.sql or self.storage or self.key_vault


@dataclass(frozen=True)
class RequestedFeatures:
    """Feature set the invariant enforcer checks the model against."""

    vpn: bool = False
    firewall: bool = False
    bastion: bool = False
    waf: bool = False
    express_route: bool = False
    private_endpoints: PrivateEndpointTargets = field(
        default_factory=PrivateEndpointTargets
    )

    @classmethod
    def from_flags(cls, flags: RequirementFlags) -> "RequestedFeatures":
        return cls(
            vpn=flags.vpn,
            firewall=flags.firewall,
            bastion=flags.bastion,
            waf=flags.waf,
            express_route=flags.express_route_ready,
            private_endpoints=PrivateEndpointTargets(
                sql=flags.private_endpoint_sql,
                storage=flags.private_endpoint_storage,
                key_vault=flags.private_endpoint_key_vault,
            ),
        )
