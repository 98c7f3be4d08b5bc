"""
Members Application DTOs
========================

Pydantic models for the members API layer.

Response models are built straight from domain entities
(`from_attributes`), so derived properties such as `membership_status`
and `utilization_rate` serialize like ordinary fields.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from studiodesk.config import MOMENCE_ACTIONS


# ========== Request DTOs ==========

class MomenceProxyRequest(BaseModel):
    """Body of the Momence action-dispatch endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    action: Optional[str] = Field(None, description=f"One of: {', '.join(MOMENCE_ACTIONS)}")
    query: Optional[str] = None
    member_id: Optional[Union[int, str]] = Field(None, alias="memberId")
    session_id: Optional[Union[int, str]] = Field(None, alias="sessionId")
    page: int = Field(default=0, ge=0)
    page_size: int = Field(default=100, ge=1, alias="pageSize")

    @field_validator("member_id", "session_id")
    @classmethod
    def stringify_id(cls, v: Optional[Union[int, str]]) -> Optional[str]:
        return None if v is None else str(v)


# ========== Response DTOs ==========

class _FromDomain(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class VisitStatsInfo(_FromDomain):
    appointments: int
    appointment_visits: int
    bookings: int
    booking_visits: int
    open_area_visits: int
    total: int


class CustomFieldInfo(_FromDomain):
    id: str
    label: str
    type: str
    value: str


class CustomerTagInfo(_FromDomain):
    id: str
    name: str
    is_customer_badge: bool
    badge_label: str
    badge_color: str


class MemberInfo(_FromDomain):
    """Member as shown in search results."""
    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str
    picture_url: str
    first_seen: Optional[datetime]
    last_seen: Optional[datetime]
    notes: str
    activity_level: str
    visits: VisitStatsInfo
    custom_fields: List[CustomFieldInfo]
    tags: List[CustomerTagInfo]


class MembershipInfo(_FromDomain):
    id: str
    membership_id: str
    name: str
    type: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    is_frozen: bool
    status: str
    sessions_used: int
    sessions_limit: Optional[int]
    appointments_used: int
    appointments_limit: Optional[int]
    credits_left: Optional[int]


class MemberSessionInfo(_FromDomain):
    id: str
    session_id: str
    name: str
    type: str
    starts_at: Optional[datetime]
    ends_at: Optional[datetime]
    duration_in_minutes: int
    checked_in: bool
    cancelled_at: Optional[datetime]
    teacher_name: str
    location_name: str


class MemberProfileResponse(_FromDomain):
    """Member detail with history and derived status fields."""
    member: MemberInfo
    membership_status: str
    activity_level: str
    current_membership: Optional[MembershipInfo]
    memberships: List[MembershipInfo]
    total_visits: int
    total_bookings: int
    booking_visits: int
    recent_sessions: List[MemberSessionInfo]
    last_session: Optional[MemberSessionInfo]


class TeacherInfo(_FromDomain):
    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    picture_url: str


class SessionInfo(_FromDomain):
    """Normalized session with capacity figures."""
    id: str
    name: str
    description: str
    type: str
    starts_at: Optional[datetime]
    ends_at: Optional[datetime]
    duration_in_minutes: int
    capacity: int
    booking_count: int
    available_spots: int
    utilization_rate: int
    waitlist_capacity: int
    waitlist_booking_count: int
    teacher: TeacherInfo
    additional_teachers: List[TeacherInfo]
    location_id: str
    location_name: str
    is_recurring: bool
    is_cancelled: bool
    is_in_person: bool
    is_draft: bool
    status: str
    online_stream_url: str
    zoom_link: str
    banner_image_url: str
    tags: List[str]
    has_details: bool


class SessionListResponse(BaseModel):
    sessions: List[SessionInfo]
    count: int
    location_id: Optional[str] = None
