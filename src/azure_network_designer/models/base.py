"""Base Pydantic models for Azure topology nodes."""

from ipaddress import IPv4Network, ip_network
from typing import Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict


class CIDRBlock(BaseModel):
    """Validated IPv4 CIDR block; host bits are tolerated."""

    cidr: str = Field(..., description="CIDR notation (e.g., 10.0.0.0/16)")

    @field_validator("cidr")
    @classmethod
    def validate_cidr(cls, v: str) -> str:
        if "/" not in v:
            raise ValueError(f"Invalid CIDR format: {v}")
        try:
            net = ip_network(v, strict=False)
        except ValueError:
            raise ValueError(f"Invalid CIDR format: {v}")
        if net.version != 4:
            raise ValueError(f"Only IPv4 address spaces are supported: {v}")
        return v

    @property
    def network(self) -> IPv4Network:
        return ip_network(self.cidr, strict=False)

    @classmethod
    def parse(cls, value) -> Optional["CIDRBlock"]:
        """Block for ``value``, or None when it is not a usable CIDR."""
        if not isinstance(value, str):
            return None
        try:
            return cls(cidr=value.strip())
        except ValueError:
            return None


class TopologyNode(BaseModel):
    """Base model for every node of the topology (VNets, subnets, resources)."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., description="Sanitized node identifier")
    label: Optional[str] = Field(None, description="Display label")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v:
            raise ValueError("Node ID must not be empty")
        return v

    def to_dict(self) -> dict:
        """Convert to a camelCase dict, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)
