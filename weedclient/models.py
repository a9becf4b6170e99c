"""Pydantic models for master and volume server responses."""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for JSON bodies; accepts both wire names and field names."""
    model_config = ConfigDict(populate_by_name=True)


class Location(WireModel):
    """One volume server holding a replica of a volume."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    url: str
    public_url: str = Field('', alias='publicUrl')


# Ordered, non-empty; the master lists the primary location first.
VolumeLocations = Tuple[Location, ...]


class LookupResult(WireModel):
    """Response model for /dir/lookup."""
    volume_id: str = Field('', alias='volumeId')
    locations: List[Location] = Field(default_factory=list)
    error: str = ''


class AssignResult(WireModel):
    """Response model for /dir/assign."""
    fid: str = ''
    url: str = ''
    public_url: str = Field('', alias='publicUrl')
    count: int = 0
    error: str = ''


class UploadResult(WireModel):
    """Response model for a volume server upload."""
    name: str = ''
    size: int = 0
    etag: str = Field('', alias='eTag')
    error: str = ''


class SubmitResult(WireModel):
    """Response model for /submit."""
    file_name: str = Field('', alias='fileName')
    fid: str = ''
    file_url: str = Field('', alias='fileUrl')
    size: int = 0
    error: str = ''


class SystemStatus(WireModel):
    """Response model for /dir/status."""
    model_config = ConfigDict(populate_by_name=True, extra='allow')

    version: str = Field('', alias='Version')
    topology: Optional[Dict[str, Any]] = Field(None, alias='Topology')


class ClusterStatus(WireModel):
    """Response model for /cluster/status."""
    model_config = ConfigDict(populate_by_name=True, extra='allow')

    is_leader: bool = Field(False, alias='IsLeader')
    leader: str = Field('', alias='Leader')
    peers: List[str] = Field(default_factory=list, alias='Peers')
