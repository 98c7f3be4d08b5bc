"""
Momence Payload Normalizers
===========================

Pure functions mapping raw Momence JSON into domain entities.

Absent source fields become empty defaults, so callers never have to
check for missing keys downstream.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from studiodesk.members.domain.entities import (
    CustomField,
    CustomerTag,
    Member,
    MemberProfile,
    MemberSession,
    Membership,
    Session,
    Teacher,
    VisitStats,
)

DETAIL_KEY = "detailedInfo"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return _int(value)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _items(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def merge_session_detail(summary: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Shallow-merge a session's detail record over its summary record.

    Detail fields win; detail fields that are null keep the summary value.
    """
    merged = {k: v for k, v in summary.items() if k != DETAIL_KEY}
    detail = summary.get(DETAIL_KEY)
    if isinstance(detail, Mapping):
        merged.update({k: v for k, v in detail.items() if v is not None})
    return merged


def normalize_visits(raw: Any) -> VisitStats:
    visits = _mapping(raw)
    return VisitStats(
        appointments=_int(visits.get("appointments")),
        appointment_visits=_int(visits.get("appointmentsVisits")),
        bookings=_int(visits.get("bookings")),
        booking_visits=_int(visits.get("bookingsVisits")),
        open_area_visits=_int(visits.get("openAreaVisits")),
        total=_int(visits.get("total", visits.get("totalVisits"))),
    )


def normalize_member(raw: Mapping[str, Any]) -> Member:
    custom_fields = [
        CustomField(
            id=_text(f.get("id")),
            label=_text(f.get("label")),
            type=_text(f.get("type")),
            value=_text(f.get("value")),
        )
        for f in map(_mapping, _items(raw.get("customerFields")))
    ]
    tags = [
        CustomerTag(
            id=_text(t.get("id")),
            name=_text(t.get("name")),
            is_customer_badge=bool(t.get("isCustomerBadge")),
            badge_label=_text(t.get("badgeLabel")),
            badge_color=_text(t.get("badgeColor")),
        )
        for t in map(_mapping, _items(raw.get("customerTags")))
    ]

    return Member(
        id=_text(raw.get("id")),
        first_name=_text(raw.get("firstName")),
        last_name=_text(raw.get("lastName")),
        email=_text(raw.get("email")),
        phone=_text(raw.get("phoneNumber") or raw.get("phone")),
        picture_url=_text(raw.get("pictureUrl")),
        first_seen=parse_timestamp(raw.get("firstSeen")),
        last_seen=parse_timestamp(raw.get("lastSeen")),
        notes=_text(raw.get("notes")),
        visits=normalize_visits(raw.get("visits")),
        custom_fields=custom_fields,
        tags=tags,
    )


def normalize_membership(raw: Mapping[str, Any]) -> Membership:
    plan = _mapping(raw.get("membership"))
    return Membership(
        id=_text(raw.get("id")),
        membership_id=_text(plan.get("id")),
        name=_text(plan.get("name")),
        type=_text(raw.get("type") or plan.get("type")),
        start_date=parse_timestamp(raw.get("startDate")),
        end_date=parse_timestamp(raw.get("endDate")),
        is_frozen=bool(raw.get("isFrozen")),
        sessions_used=_int(raw.get("usedSessions")),
        sessions_limit=_optional_int(raw.get("usageLimitForSessions")),
        appointments_used=_int(raw.get("usedAppointments")),
        appointments_limit=_optional_int(raw.get("usageLimitForAppointments")),
        credits_left=_optional_int(raw.get("eventCreditsLeft")),
    )


def normalize_member_session(raw: Mapping[str, Any]) -> MemberSession:
    session = _mapping(raw.get("session"))
    teacher = _mapping(session.get("teacher"))
    location = _mapping(session.get("inPersonLocation"))
    return MemberSession(
        id=_text(raw.get("id")),
        session_id=_text(session.get("id")),
        name=_text(session.get("name")),
        type=_text(session.get("type")),
        starts_at=parse_timestamp(session.get("startsAt")),
        ends_at=parse_timestamp(session.get("endsAt")),
        duration_in_minutes=_int(session.get("durationInMinutes")),
        checked_in=bool(raw.get("checkedIn")),
        cancelled_at=parse_timestamp(raw.get("cancelledAt")),
        teacher_name=f"{_text(teacher.get('firstName'))} {_text(teacher.get('lastName'))}".strip(),
        location_name=_text(location.get("name")),
    )


def normalize_teacher(raw: Any) -> Teacher:
    teacher = _mapping(raw)
    return Teacher(
        id=_text(teacher.get("id")),
        first_name=_text(teacher.get("firstName")),
        last_name=_text(teacher.get("lastName")),
        email=_text(teacher.get("email")),
        picture_url=_text(teacher.get("pictureUrl")),
    )


def _tag_names(raw: Any) -> List[str]:
    names = []
    for tag in _items(raw):
        if isinstance(tag, Mapping):
            names.append(_text(tag.get("name")))
        else:
            names.append(_text(tag))
    return [n for n in names if n]


def normalize_session(raw: Mapping[str, Any]) -> Session:
    """Normalize a session, folding in its detail record when present."""
    has_details = isinstance(raw.get(DETAIL_KEY), Mapping)
    merged = merge_session_detail(raw)
    location = _mapping(merged.get("inPersonLocation"))

    return Session(
        id=_text(merged.get("id")),
        name=_text(merged.get("name")),
        description=_text(merged.get("description")),
        type=_text(merged.get("type")),
        starts_at=parse_timestamp(merged.get("startsAt")),
        ends_at=parse_timestamp(merged.get("endsAt")),
        duration_in_minutes=_int(merged.get("durationInMinutes")),
        capacity=_int(merged.get("capacity")),
        booking_count=_int(merged.get("bookingCount")),
        waitlist_capacity=_int(merged.get("waitlistCapacity")),
        waitlist_booking_count=_int(merged.get("waitlistBookingCount")),
        teacher=normalize_teacher(merged.get("teacher")),
        additional_teachers=[normalize_teacher(t) for t in _items(merged.get("additionalTeachers"))],
        location_id=_text(location.get("id")),
        location_name=_text(location.get("name")),
        is_recurring=bool(merged.get("isRecurring")),
        is_cancelled=bool(merged.get("isCancelled")),
        is_in_person=bool(merged.get("isInPerson")),
        is_draft=bool(merged.get("isDraft")),
        online_stream_url=_text(merged.get("onlineStreamUrl")),
        zoom_link=_text(merged.get("zoomLink")),
        banner_image_url=_text(merged.get("bannerImageUrl")),
        tags=_tag_names(merged.get("tags")),
        has_details=has_details,
    )


def normalize_member_profile(
    member: Mapping[str, Any],
    sessions: List[Mapping[str, Any]],
    memberships: List[Mapping[str, Any]],
) -> MemberProfile:
    return MemberProfile(
        member=normalize_member(member),
        memberships=[normalize_membership(m) for m in memberships if isinstance(m, Mapping)],
        sessions=[normalize_member_session(s) for s in sessions if isinstance(s, Mapping)],
    )
