from pydantic import BaseModel, Field


class EpgProgramme(BaseModel):
    """Single programme of a channel"""
    start_at: int = Field(..., description="Start time in epoch milliseconds (0 when unknown)")
    end_at: int = Field(..., description="End time in epoch milliseconds (0 when unknown)")
    title: str = Field(..., description="Programme title")


class Epg(BaseModel):
    """Programme guide of a single channel"""
    channel: str = Field(..., description="Channel display name")
    programmes: list[EpgProgramme] = Field(default_factory=list, description="Programmes in document order")


class Iptv(BaseModel):
    """Playlist entry"""
    name: str = Field(..., description="Entry name as shown to the user")
    channel_name: str = Field(..., description="Channel name used to match guide data")
    url_list: list[str] = Field(default_factory=list, description="Stream URLs, first is preferred")


class IptvGroup(BaseModel):
    """Named group of playlist entries"""
    name: str = Field(..., description="Group name")
    iptv_list: list[Iptv] = Field(default_factory=list, description="Entries in playlist order")


class EpgListResponse(BaseModel):
    """Programme guide response"""
    timestamp: str
    channels: int
    programmes: int
    epg: list[Epg]


class IptvGroupListResponse(BaseModel):
    """Playlist response"""
    timestamp: str
    simplified: bool
    groups: int
    channels: int
    iptv: list[IptvGroup]


class ErrorDetail(BaseModel):
    """Standard error detail"""
    code: str = Field(..., description="Error code (e.g., 'EPG_FAILED', 'IPTV_FAILED')")
    message: str = Field(..., description="Human-readable error message")
    context: dict | None = Field(None, description="Additional context about the error")


class StandardErrorResponse(BaseModel):
    """Standardized error response for all endpoints"""
    status: str = Field("error", description="Status indicator")
    timestamp: str = Field(..., description="ISO8601 timestamp of error")
    error: ErrorDetail = Field(..., description="Error details")
