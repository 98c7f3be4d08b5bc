"""
Members Domain Layer
====================

Domain layer for the Momence member/session context.

Contains:
- Entities: Member, Membership, Session, MemberProfile
- Value Objects: MemberClassifier, LocationDirectory
- Normalizers: raw Momence payload -> entities

This layer is framework-agnostic and contains pure business logic.
"""

from studiodesk.members.domain.value_objects import MemberClassifier, LocationDirectory
from studiodesk.members.domain.entities import (
    VisitStats,
    CustomField,
    CustomerTag,
    Member,
    Membership,
    MemberSession,
    Teacher,
    Session,
    MemberProfile,
)
from studiodesk.members.domain.normalizers import (
    parse_timestamp,
    merge_session_detail,
    normalize_member,
    normalize_membership,
    normalize_member_session,
    normalize_session,
    normalize_member_profile,
)

__all__ = [
    "MemberClassifier",
    "LocationDirectory",
    "VisitStats",
    "CustomField",
    "CustomerTag",
    "Member",
    "Membership",
    "MemberSession",
    "Teacher",
    "Session",
    "MemberProfile",
    "parse_timestamp",
    "merge_session_detail",
    "normalize_member",
    "normalize_membership",
    "normalize_member_session",
    "normalize_session",
    "normalize_member_profile",
]
