"""Root topology aggregate and the loose upstream shape it is built from."""

from typing import Any, Literal, Optional
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from .resources import Resource, ResourceBase, ResourceKind
from .vnet import Peering, VNet

EdgeKind = Literal["l3", "l7"]

FIX_PREFIX = "fix: "
WARN_PREFIX = "warn: "


class Edge(BaseModel):
    """Directed relationship between two node ids."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(..., alias="from")
    target: str = Field(..., alias="to")
    kind: EdgeKind = "l7"
    via_subnet_id: Optional[str] = Field(None, alias="viaSubnetId")

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source, self.target)


class TopologyModel(BaseModel):
    """Canonical hub-and-spoke model.

    ``vnets`` is the only store of VNets; ``hubs``, ``spokes`` and ``hub`` are
    views over it, so the three shapes can never drift apart.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    region: str = Field(default="japaneast")
    vnets: list[VNet] = Field(default_factory=list)
    peerings: list[Peering] = Field(default_factory=list)
    resources: list[Resource] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def hubs(self) -> list[VNet]:
        return [v for v in self.vnets if v.kind == "hub"]

    @computed_field
    @property
    def spokes(self) -> list[VNet]:
        return [v for v in self.vnets if v.kind == "spoke"]

    @computed_field
    @property
    def hub(self) -> Optional[VNet]:
        """First hub; the single-hub compatibility representative."""
        return next((v for v in self.vnets if v.kind == "hub"), None)

    def vnet(self, vnet_id: str) -> Optional[VNet]:
        return next((v for v in self.vnets if v.id == vnet_id), None)

    def resource(self, resource_id: str) -> Optional[ResourceBase]:
        return next((r for r in self.resources if r.id == resource_id), None)

    def resources_of(self, kind: ResourceKind) -> list[ResourceBase]:
        return [r for r in self.resources if r.type == kind]

    def first_of(self, kind: ResourceKind) -> Optional[ResourceBase]:
        return next((r for r in self.resources if r.type == kind), None)

    def has(self, kind: ResourceKind) -> bool:
        return self.first_of(kind) is not None

    def free_resource_id(self, base: str) -> str:
        """``base``, or ``base_2``, ``base_3``... when a resource already holds it."""
        taken = {r.id for r in self.resources}
        candidate, n = base, 2
        while candidate in taken:
            candidate = f"{base}_{n}"
            n += 1
        return candidate

    def add_note(self, note: str) -> None:
        self.notes.append(note)

    @property
    def fixes(self) -> list[str]:
        return [n[len(FIX_PREFIX) :] for n in self.notes if n.startswith(FIX_PREFIX)]

    @property
    def warnings(self) -> list[str]:
        return [n[len(WARN_PREFIX) :] for n in self.notes if n.startswith(WARN_PREFIX)]

    def to_dict(self) -> dict:
        """Serialise with camelCase keys and all three VNet views."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _as_list(v: Any) -> list:
    if v is None:
        return []
    if isinstance(v, (list, tuple)):
        return list(v)
    return [v]


class RawSubnet(BaseModel):
    """Subnet as supplied upstream; every field may be missing."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = None
    label: Optional[str] = None
    cidr: Optional[str] = None
    purpose: Optional[str] = None
    nsg_id: Optional[str] = Field(None, alias="nsgId")
    route_table_id: Optional[str] = Field(None, alias="routeTableId")


class RawVNet(BaseModel):
    """VNet as supplied upstream; every field may be missing."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = None
    label: Optional[str] = None
    cidr: Optional[str] = None
    kind: Optional[str] = None
    subnets: list[RawSubnet] = Field(default_factory=list)

    @field_validator("subnets", mode="before")
    @classmethod
    def _subnets_list(cls, v: Any) -> list:
        return [s for s in _as_list(v) if isinstance(s, (dict, RawSubnet))]


class RawModel(BaseModel):
    """Loosely shaped model from a template or an LLM.

    Accepts any of the three VNet shapes (flat ``vnets``, ``hubs`` +
    ``spokes``, legacy ``hub`` + ``spokes``). ``edges`` is accepted so that
    upstream payloads validate, but it never reaches ``TopologyModel``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    region: Optional[str] = None
    vnets: list[RawVNet] = Field(default_factory=list)
    hubs: list[RawVNet] = Field(default_factory=list)
    hub: Optional[RawVNet] = None
    spokes: list[RawVNet] = Field(default_factory=list)
    peerings: list[dict[str, Any]] = Field(default_factory=list)
    resources: list[dict[str, Any]] = Field(default_factory=list)
    edges: list[Any] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)

    @field_validator("vnets", "hubs", "spokes", mode="before")
    @classmethod
    def _vnet_list(cls, v: Any) -> list:
        return [x for x in _as_list(v) if isinstance(x, (dict, RawVNet))]

    @field_validator("hub", mode="before")
    @classmethod
    def _single_hub(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, RawVNet)) else None

    @field_validator("peerings", "resources", mode="before")
    @classmethod
    def _dict_list(cls, v: Any) -> list:
        return [x for x in _as_list(v) if isinstance(x, dict)]

    @field_validator("edges", mode="before")
    @classmethod
    def _edge_list(cls, v: Any) -> list:
        return _as_list(v)

    @field_validator("notes", mode="before")
    @classmethod
    def _note_list(cls, v: Any) -> list:
        return [str(x) for x in _as_list(v) if x is not None]
