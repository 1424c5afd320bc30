from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from app.models.member import MemberStatus


class ApplicationCreate(BaseModel):
    """Public membership application. Validated by the service, not here,
    so that every problem is reported in one response."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    student_id: Optional[str] = None
    enrollment_number: Optional[str] = None
    enrollment_track: Optional[str] = None
    phone: Optional[str] = None
    telegram: Optional[str] = None
    discord: Optional[str] = None


class MemberUpdate(BaseModel):
    """Admin edit. Only the fields actually sent are applied."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    student_id: Optional[str] = None
    enrollment_number: Optional[str] = None
    enrollment_track: Optional[str] = None
    phone: Optional[str] = None
    telegram: Optional[str] = None
    discord: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = Field(None, description="Target status token")
    reason: Optional[str] = Field(None, description="History reason for a status change")


class BatchStatusUpdate(BaseModel):
    member_ids: List[int]
    status: str = Field(..., description="active, rejected or expired")
    reason: Optional[str] = None


class MemberResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    student_id: Optional[str] = None
    enrollment_number: Optional[str] = None
    enrollment_track: str
    phone: Optional[str] = None
    telegram: Optional[str] = None
    discord: Optional[str] = None
    status: MemberStatus
    approved_at: Optional[datetime] = None
    expires_at: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class HistoryEntryResponse(BaseModel):
    id: int
    member_id: int
    old_status: Optional[MemberStatus] = None
    new_status: MemberStatus
    reason: Optional[str] = None
    changed_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MemberStats(BaseModel):
    total: int = 0
    active: int = 0
    pending: int = 0
    rejected: int = 0
    expired: int = 0
    bureau: int = 0


class MemberListResponse(BaseModel):
    members: List[MemberResponse]
    stats: MemberStats


class TrackCount(BaseModel):
    enrollment_track: str
    count: int


class AdminStatsResponse(BaseModel):
    stats: MemberStats
    track_distribution: List[TrackCount]
    recent_applications: List[MemberResponse]
    bureau: List[MemberResponse]


class ImportRequest(BaseModel):
    csv: str


class ImportStats(BaseModel):
    imported: int
    updated: int
    skipped: int
    total: int


class ImportResponse(BaseModel):
    success: bool = True
    stats: ImportStats
    errors: List[str] = Field(default_factory=list)


class SettingsResponse(BaseModel):
    settings: Dict[str, Any]


class PublicConfig(BaseModel):
    membership_open: bool
    current_year: str
    enrollment_tracks: List[str]


class SettingsUpdate(BaseModel):
    settings: Dict[str, Any]
