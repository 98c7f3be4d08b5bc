"""
Members Application Layer
=========================

Application layer for the Momence member/session context.

Contains:
- Services: member directory, session aggregation, proxy dispatch
- DTOs: API request/response models
"""

from studiodesk.members.application.dto import (
    MomenceProxyRequest,
    MemberInfo,
    MemberProfileResponse,
    MemberSessionInfo,
    SessionInfo,
    SessionListResponse,
)
from studiodesk.members.application.services import (
    MIN_SEARCH_QUERY_LENGTH,
    SessionAggregator,
    MemberDirectoryService,
    MomenceProxyService,
)

__all__ = [
    # DTOs
    "MomenceProxyRequest",
    "MemberInfo",
    "MemberProfileResponse",
    "MemberSessionInfo",
    "SessionInfo",
    "SessionListResponse",
    # Services
    "MIN_SEARCH_QUERY_LENGTH",
    "SessionAggregator",
    "MemberDirectoryService",
    "MomenceProxyService",
]
