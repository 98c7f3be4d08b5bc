"""
Members Domain Entities
=======================

Canonical shapes for data pulled from the Momence platform.

Every field has a concrete default so a normalized entity never carries
a missing value; optional dates and usage limits are explicit None.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from studiodesk.config import SessionStatus
from studiodesk.members.domain.value_objects import MemberClassifier


@dataclass
class VisitStats:
    """Visit counters reported by the platform for a member."""
    appointments: int = 0
    appointment_visits: int = 0
    bookings: int = 0
    booking_visits: int = 0
    open_area_visits: int = 0
    total: int = 0


@dataclass
class CustomField:
    id: str = ""
    label: str = ""
    type: str = ""
    value: str = ""


@dataclass
class CustomerTag:
    id: str = ""
    name: str = ""
    is_customer_badge: bool = False
    badge_label: str = ""
    badge_color: str = ""


@dataclass
class Member:
    """A studio customer as returned by member search."""
    id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    picture_url: str = ""
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    notes: str = ""
    visits: VisitStats = field(default_factory=VisitStats)
    custom_fields: List[CustomField] = field(default_factory=list)
    tags: List[CustomerTag] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def activity_level(self) -> str:
        return MemberClassifier.activity_level(self.visits.total)


@dataclass
class Membership:
    """A plan bought by a member."""
    id: str = ""
    membership_id: str = ""
    name: str = ""
    type: str = ""
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None  # None means open-ended
    is_frozen: bool = False
    sessions_used: int = 0
    sessions_limit: Optional[int] = None
    appointments_used: int = 0
    appointments_limit: Optional[int] = None
    credits_left: Optional[int] = None

    @property
    def status(self) -> str:
        return MemberClassifier.membership_status(self)


@dataclass
class MemberSession:
    """A member's booking of a session."""
    id: str = ""
    session_id: str = ""
    name: str = ""
    type: str = ""
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    duration_in_minutes: int = 0
    checked_in: bool = False
    cancelled_at: Optional[datetime] = None
    teacher_name: str = ""
    location_name: str = ""


@dataclass
class Teacher:
    id: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    picture_url: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Session:
    """
    A bookable class or appointment instance.

    Sessions from the bulk listing may have been enriched with their
    detail record; `has_details` records whether that succeeded.
    """
    id: str
    name: str = ""
    description: str = ""
    type: str = ""
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    duration_in_minutes: int = 0
    capacity: int = 0
    booking_count: int = 0
    waitlist_capacity: int = 0
    waitlist_booking_count: int = 0
    teacher: Teacher = field(default_factory=Teacher)
    additional_teachers: List[Teacher] = field(default_factory=list)
    location_id: str = ""
    location_name: str = ""
    is_recurring: bool = False
    is_cancelled: bool = False
    is_in_person: bool = False
    is_draft: bool = False
    online_stream_url: str = ""
    zoom_link: str = ""
    banner_image_url: str = ""
    tags: List[str] = field(default_factory=list)
    has_details: bool = False

    @property
    def available_spots(self) -> int:
        return self.capacity - self.booking_count

    @property
    def utilization_rate(self) -> int:
        """Booked share of capacity as a whole percentage, rounded half up."""
        if self.capacity <= 0:
            return 0
        return int(self.booking_count * 100 / self.capacity + 0.5)

    @property
    def status(self) -> str:
        if self.is_cancelled:
            return SessionStatus.CANCELLED
        if self.is_draft:
            return SessionStatus.DRAFT
        return SessionStatus.ACTIVE


@dataclass
class MemberProfile:
    """
    Member detail combined with their sessions and active memberships.

    Only produced by the detail path. Status and activity tier are always
    derived from the nested data, never stored.
    """
    member: Member
    memberships: List[Membership] = field(default_factory=list)
    sessions: List[MemberSession] = field(default_factory=list)

    @property
    def current_membership(self) -> Optional[Membership]:
        return self.memberships[0] if self.memberships else None

    @property
    def membership_status(self) -> str:
        return MemberClassifier.membership_status(self.current_membership)

    @property
    def activity_level(self) -> str:
        return self.member.activity_level

    @property
    def total_visits(self) -> int:
        return len(self.sessions) or self.member.visits.total

    @property
    def total_bookings(self) -> int:
        return len([s for s in self.sessions if s.session_id]) or self.member.visits.bookings

    @property
    def booking_visits(self) -> int:
        return len([s for s in self.sessions if s.checked_in]) or self.member.visits.booking_visits

    @property
    def recent_sessions(self) -> List[MemberSession]:
        return self.sessions[-5:]

    @property
    def last_session(self) -> Optional[MemberSession]:
        return self.sessions[-1] if self.sessions else None
