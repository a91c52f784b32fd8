from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from typing import List, Optional, Dict, Any, Literal, Annotated
from datetime import datetime

Identifier = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
RelationshipType = Literal[
    "feeds_into",
    "derived_from",
    "transforms_to",
    "aggregates_to",
    "copies_to",
    "references",
    "depends_on",
]
Direction = Literal["upstream", "downstream", "both"]
Frequency = Literal["real-time", "batch", "daily", "weekly", "monthly", "on-demand"]
Strength = Annotated[float, Field(ge=0.0, le=1.0)]


class LineageMetadata(BaseModel):
    """Open metadata bag; the recognized fields are typed, anything else passes through."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    transformation_type: Optional[str] = Field(default=None, alias="transformationType")
    frequency: Optional[Frequency] = None
    last_updated: Optional[datetime] = Field(default=None, alias="lastUpdated")
    data_volume: Optional[str] = Field(default=None, alias="dataVolume")
    quality_score: Optional[float] = Field(default=None, alias="qualityScore")
    business_rules: Optional[List[str]] = Field(default=None, alias="businessRules")
    technical_notes: Optional[str] = Field(default=None, alias="technicalNotes")

    def as_stored(self) -> Dict[str, Any]:
        # only keys the caller sent, so a shallow merge keeps the rest
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class LineageEdgeCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    source_asset_id: Identifier = Field(alias="sourceAssetId")
    target_asset_id: Identifier = Field(alias="targetAssetId")
    relationship_type: RelationshipType = Field(default="feeds_into", alias="relationshipType")
    strength: Optional[Strength] = None
    metadata: LineageMetadata = Field(default_factory=LineageMetadata)
    created_by: Optional[Identifier] = Field(default=None, alias="createdBy")

    @field_validator("metadata", mode="before")
    @classmethod
    def _none_metadata(cls, value):
        return {} if value is None else value


class LineageEdgeUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    relationship_type: Optional[RelationshipType] = Field(default=None, alias="relationshipType")
    strength: Optional[Strength] = None
    metadata: Optional[LineageMetadata] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")


class LineageQuery(BaseModel):
    direction: Optional[Direction] = None
    depth: Optional[int] = Field(default=None, ge=0)


class LineageListQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=500)
    relationship_type: Optional[RelationshipType] = Field(default=None, alias="relationshipType")
    is_active: bool = Field(default=True, alias="isActive")


class AssetStub(BaseModel):
    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    domain: Optional[str] = None


class LineageEntry(BaseModel):
    source: AssetStub
    target: AssetStub
    relationship: Dict[str, Any]


class GraphNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    domain: Optional[str] = None
    is_center: bool = Field(default=False, alias="isCenter")
    level: int = 0


class GraphLink(BaseModel):
    source: str
    target: str
    type: str
    strength: float
    metadata: Dict[str, Any] = {}


class GraphMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    total_relationships: int = Field(alias="totalRelationships")
    upstream_count: int = Field(alias="upstreamCount")
    downstream_count: int = Field(alias="downstreamCount")
    depth: int
    direction: Direction
    truncated: bool = False


class LineageGraphResponse(BaseModel):
    asset: AssetStub
    nodes: List[GraphNode]
    links: List[GraphLink]
    metadata: GraphMetadata
