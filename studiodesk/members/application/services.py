"""
Members Application Services
============================

Orchestrates Momence lookups: member search and profiles, bulk session
aggregation with detail enrichment, and the action-dispatch proxy.
"""

import asyncio
from typing import Any, Dict, List, Optional

from studiodesk.config import MomenceAction
from studiodesk.core import FetchResult, ValidationException
from studiodesk.members.domain import (
    LocationDirectory,
    Member,
    MemberProfile,
    MemberSession,
    Session,
    normalize_member,
    normalize_member_profile,
    normalize_member_session,
    normalize_session,
)
from studiodesk.members.domain.normalizers import DETAIL_KEY
from studiodesk.members.infrastructure import MomenceClient
from studiodesk.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)

MIN_SEARCH_QUERY_LENGTH = 2


class SessionAggregator:
    """
    Collects sessions across pages and enriches each with its detail record.

    Pages are fetched one after another; within a page every detail fetch
    is issued at once and joined before the next page is requested.
    """

    def __init__(
        self,
        client: MomenceClient,
        locations: LocationDirectory,
        page_size: int = 200,
    ):
        self._client = client
        self._locations = locations
        self._page_size = page_size

    async def list_all_sessions_with_details(
        self,
        max_pages: int = 5,
        starts_before: Optional[str] = None,
        location_name: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch up to `max_pages` pages of sessions with details.

        Returns raw session dicts in page order then server order; each
        carries its detail record under `detailedInfo` when that fetch
        succeeded.
        """
        location_id = self._locations.resolve(location_name)
        if location_name and location_id is None:
            logger.info("Unknown studio location, listing all locations", extra={"location": location_name})

        sessions: List[Dict[str, Any]] = []

        with log_latency(logger, "session_aggregation", max_pages=max_pages, location_id=location_id):
            for page in range(max_pages):
                result = await self._client.list_sessions(
                    page=page,
                    page_size=self._page_size,
                    starts_before=starts_before,
                    location_id=location_id,
                )
                envelope = result.value if isinstance(result.value, dict) else {}
                payload = envelope.get("payload") or []
                if not payload:
                    break

                sessions.extend(await self._enrich(payload))

                if len(payload) < self._page_size:
                    break
                total_count = (envelope.get("pagination") or {}).get("totalCount")
                if isinstance(total_count, int) and total_count <= (page + 1) * self._page_size:
                    break

        logger.info("Sessions aggregated", extra={"count": len(sessions), "location_id": location_id})
        return sessions

    async def _enrich(self, payload: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        details = await asyncio.gather(
            *(self._client.get_session_by_id(str(session.get("id"))) for session in payload),
            return_exceptions=True,
        )

        enriched = []
        for session, detail in zip(payload, details):
            if isinstance(detail, BaseException):
                logger.error(
                    "Session detail fetch raised",
                    extra={"session_id": session.get("id"), "error": str(detail)}
                )
                enriched.append(dict(session))
            elif detail.ok and detail.value is not None:
                enriched.append({**session, DETAIL_KEY: detail.value})
            else:
                enriched.append(dict(session))
        return enriched

    async def list_sessions(
        self,
        max_pages: int = 5,
        starts_before: Optional[str] = None,
        location_name: Optional[str] = None,
    ) -> List[Session]:
        """Aggregated sessions, normalized."""
        raw = await self.list_all_sessions_with_details(max_pages, starts_before, location_name)
        return [normalize_session(s) for s in raw]

    def resolve_location(self, location_name: Optional[str]) -> Optional[str]:
        return self._locations.resolve(location_name)

    async def get_sessions_by_location(self, location_name: Optional[str] = None) -> FetchResult[Dict[str, Any]]:
        """First page of sessions for a studio, without detail enrichment."""
        return await self._client.list_sessions(
            page=0,
            page_size=self._page_size,
            location_id=self._locations.resolve(location_name),
        )


class MemberDirectoryService:
    """Member search and profile assembly."""

    def __init__(self, client: MomenceClient):
        self._client = client

    async def search_members(self, query: str) -> List[Member]:
        """Search members by name, email or phone; short queries return nothing."""
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_QUERY_LENGTH:
            return []

        result = await self._client.search_members(query)
        return [normalize_member(raw) for raw in result.value if isinstance(raw, dict)]

    async def get_member_profile(self, member_id: str) -> Optional[MemberProfile]:
        """
        Member detail combined with session history and active memberships.

        Returns None when the member itself cannot be fetched. Failed
        session or membership lookups degrade to empty lists.
        """
        member = await self._client.get_member_by_id(member_id)
        if not isinstance(member.value, dict):
            return None

        sessions, memberships = await asyncio.gather(
            self._client.get_member_sessions(member_id, include_cancelled=True, sort_order="ASC"),
            self._client.get_member_memberships(member_id),
        )

        logger.info(
            "Member profile assembled",
            extra={
                "member_id": member_id,
                "sessions": len(sessions.value),
                "memberships": len(memberships.value),
                "sessions_outcome": sessions.outcome,
                "memberships_outcome": memberships.outcome,
            }
        )
        return normalize_member_profile(member.value, sessions.value, memberships.value)

    async def get_member_bookings(self, member_id: str) -> List[MemberSession]:
        result = await self._client.get_member_bookings(member_id)
        return [normalize_member_session(raw) for raw in result.value if isinstance(raw, dict)]


class MomenceProxyService:
    """
    Action dispatcher behind the UI's single Momence proxy endpoint.

    Returns the upstream JSON untouched. Invalid requests raise
    ValidationException; upstream failures come back as a non-ok result.
    Member search is ordered by most recently seen, and the session
    listing carries no time bound.
    """

    def __init__(self, client: MomenceClient):
        self._client = client

    async def dispatch(
        self,
        action: Optional[str],
        query: Optional[str] = None,
        member_id: Optional[str] = None,
        session_id: Optional[str] = None,
        page: int = 0,
        page_size: int = 100,
    ) -> FetchResult[Any]:
        logger.info("Momence proxy action", extra={"action": action, "page": page})

        if action == MomenceAction.SEARCH_MEMBERS:
            return await self._client.search_members_page(
                query or "", page, page_size, sort_by="lastSeenAt", sort_order="DESC"
            )

        if action == MomenceAction.GET_MEMBER_SESSIONS:
            return await self._client.member_sessions_page(self._require(member_id, "memberId"), page, page_size)

        if action == MomenceAction.GET_MEMBER_MEMBERSHIPS:
            return await self._client.member_memberships_page(self._require(member_id, "memberId"), page)

        if action == MomenceAction.GET_SESSIONS:
            return await self._client.list_sessions(page=page, page_size=page_size, time_bounded=False)

        if action == MomenceAction.GET_SESSION_DETAILS:
            return await self._client.get_session_by_id(self._require(session_id, "sessionId"))

        raise ValidationException(f"Unknown action: {action}")

    @staticmethod
    def _require(value: Optional[str], name: str) -> str:
        if not value:
            raise ValidationException(f"{name} is required")
        return value
