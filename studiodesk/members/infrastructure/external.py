"""
Momence Host API Client
=======================

Typed GET operations against the Momence host API.

Every operation goes through `_get`, which:
1. short-circuits with the operation's empty value when credentials are
   incomplete (no network call);
2. authenticates when no access token is held;
3. on a 401, refreshes once and retries once;
4. converts any other failure into the empty value.

Results are returned as `FetchResult` so callers can tell an empty answer
from a failed call. Nothing here raises past the client boundary.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import httpx

from studiodesk.core import FetchOutcome, FetchResult
from studiodesk.members.infrastructure.auth import MomenceCredentials, TokenManager
from studiodesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# One refresh-and-retry per call; a second 401 gives up.
MAX_AUTH_RETRIES = 1

DEFAULT_SESSION_PAGE_SIZE = 200
DEFAULT_MEMBER_PAGE_SIZE = 100
MEMBERSHIP_PAGE_SIZE = 200


def empty_envelope() -> Dict[str, Any]:
    """Empty paginated response in Momence's envelope shape."""
    return {"payload": [], "pagination": {"totalCount": 0, "page": 0, "pageSize": 0}}


def _payload(envelope: Any) -> List[Any]:
    if isinstance(envelope, dict) and isinstance(envelope.get("payload"), list):
        return envelope["payload"]
    return []


def format_timestamp(moment: datetime) -> str:
    """UTC timestamp truncated to whole seconds, e.g. 2024-05-02T00:00:00Z."""
    return moment.astimezone(timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


def start_of_next_day(now: Optional[datetime] = None) -> str:
    """Midnight UTC at the start of tomorrow, as a Momence timestamp."""
    current = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    tomorrow = (current + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return format_timestamp(tomorrow)


class MomenceClient:
    """
    Client for the Momence host API.

    The token pair lives on the injected TokenManager, so two clients
    built with different managers never share credentials.
    """

    def __init__(
        self,
        credentials: MomenceCredentials,
        http_client: httpx.AsyncClient,
        token_manager: Optional[TokenManager] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._credentials = credentials
        self._http = http_client
        self._tokens = token_manager or TokenManager(credentials, http_client)
        self._clock = clock

    @property
    def is_configured(self) -> bool:
        return self._credentials.is_complete

    @property
    def token_manager(self) -> TokenManager:
        return self._tokens

    # ========== Members ==========

    async def search_members_page(
        self,
        query: str,
        page: int = 0,
        page_size: int = DEFAULT_MEMBER_PAGE_SIZE,
        sort_by: str = "firstName",
        sort_order: str = "ASC",
    ) -> FetchResult[Dict[str, Any]]:
        """Raw member search envelope. The minimum query length is the caller's concern."""
        return await self._get(
            "/host/members",
            params={
                "page": page,
                "pageSize": page_size,
                "sortOrder": sort_order,
                "sortBy": sort_by,
                "query": query,
            },
            empty=empty_envelope,
            operation="search_members",
        )

    async def search_members(
        self,
        query: str,
        page: int = 0,
        page_size: int = DEFAULT_MEMBER_PAGE_SIZE,
    ) -> FetchResult[List[Dict[str, Any]]]:
        result = await self.search_members_page(query, page, page_size)
        return result.map(_payload)

    async def get_member_by_id(self, member_id: str) -> FetchResult[Optional[Dict[str, Any]]]:
        return await self._get(
            f"/host/members/{member_id}",
            empty=lambda: None,
            operation="get_member_by_id",
        )

    async def member_sessions_page(
        self,
        member_id: str,
        page: int = 0,
        page_size: int = DEFAULT_MEMBER_PAGE_SIZE,
        starts_before: Optional[str] = None,
        include_cancelled: bool = False,
        sort_order: str = "DESC",
    ) -> FetchResult[Dict[str, Any]]:
        """
        Raw envelope of a member's sessions.

        Without an explicit bound only sessions starting before now are
        returned.
        """
        return await self._get(
            f"/host/members/{member_id}/sessions",
            params={
                "page": page,
                "pageSize": page_size,
                "sortOrder": sort_order,
                "sortBy": "startsAt",
                "startBefore": starts_before or format_timestamp(self._clock()),
                "includeCancelled": "true" if include_cancelled else "false",
            },
            empty=empty_envelope,
            operation="get_member_sessions",
        )

    async def get_member_sessions(
        self,
        member_id: str,
        page: int = 0,
        page_size: int = DEFAULT_MEMBER_PAGE_SIZE,
        starts_before: Optional[str] = None,
        include_cancelled: bool = False,
        sort_order: str = "DESC",
    ) -> FetchResult[List[Dict[str, Any]]]:
        result = await self.member_sessions_page(
            member_id, page, page_size, starts_before, include_cancelled, sort_order
        )
        return result.map(_payload)

    async def member_memberships_page(
        self,
        member_id: str,
        page: int = 0,
        page_size: int = MEMBERSHIP_PAGE_SIZE,
    ) -> FetchResult[Dict[str, Any]]:
        return await self._get(
            f"/host/members/{member_id}/bought-memberships/active",
            params={"page": page, "pageSize": page_size},
            empty=empty_envelope,
            operation="get_member_memberships",
        )

    async def get_member_memberships(
        self,
        member_id: str,
        page: int = 0,
        page_size: int = MEMBERSHIP_PAGE_SIZE,
    ) -> FetchResult[List[Dict[str, Any]]]:
        result = await self.member_memberships_page(member_id, page, page_size)
        return result.map(_payload)

    async def get_member_bookings(self, member_id: str) -> FetchResult[List[Dict[str, Any]]]:
        result = await self._get(
            f"/host/members/{member_id}/bookings",
            empty=empty_envelope,
            operation="get_member_bookings",
        )
        return result.map(_payload)

    # ========== Sessions ==========

    async def list_sessions(
        self,
        page: int = 0,
        page_size: int = DEFAULT_SESSION_PAGE_SIZE,
        starts_before: Optional[str] = None,
        location_id: Optional[str] = None,
        time_bounded: bool = True,
    ) -> FetchResult[Dict[str, Any]]:
        """
        One page of non-cancelled sessions, newest first.

        `starts_before` defaults to the start of the next UTC day so
        future classes stay out of listings. With `time_bounded=False`
        no upper bound is sent at all.
        """
        params: Dict[str, Any] = {
            "page": page,
            "pageSize": page_size,
            "sortOrder": "DESC",
            "sortBy": "startsAt",
            "includeCancelled": "false",
        }
        if time_bounded:
            params["startsBefore"] = starts_before or start_of_next_day(self._clock())
        if location_id:
            params["locationId"] = location_id

        return await self._get(
            "/host/sessions",
            params=params,
            empty=empty_envelope,
            operation="list_sessions",
        )

    async def get_session_by_id(self, session_id: str) -> FetchResult[Optional[Dict[str, Any]]]:
        return await self._get(
            f"/host/sessions/{session_id}",
            empty=lambda: None,
            operation="get_session_by_id",
        )

    # ========== Request execution ==========

    async def _get(
        self,
        path: str,
        empty: Callable[[], Any],
        operation: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> FetchResult[Any]:
        if not self._credentials.is_complete:
            logger.warning(
                "Momence lookup skipped - credentials not configured",
                extra={"operation": operation}
            )
            return FetchResult.empty(empty(), FetchOutcome.NOT_CONFIGURED, "Momence credentials not configured")

        if not self._tokens.has_access_token:
            if not await self._tokens.authenticate():
                return FetchResult.empty(empty(), FetchOutcome.AUTH_FAILED, "Momence authentication failed")

        url = f"{self._credentials.base_url}{path}"
        attempt = 0
        while True:
            try:
                response = await self._http.get(url, params=params, headers=self._tokens.bearer_headers())
            except httpx.HTTPError as e:
                logger.error(
                    "Momence request failed",
                    extra={"operation": operation, "path": path, "error": str(e)}
                )
                return FetchResult.empty(empty(), FetchOutcome.TRANSPORT_ERROR, str(e))

            if response.status_code == 401:
                if attempt >= MAX_AUTH_RETRIES:
                    logger.warning(
                        "Momence rejected the refreshed token",
                        extra={"operation": operation, "path": path}
                    )
                    return FetchResult.empty(
                        empty(), FetchOutcome.AUTH_FAILED, "Unauthorized after token refresh", 401
                    )

                logger.info("Momence token expired, refreshing", extra={"operation": operation})
                if not await self._tokens.refresh():
                    return FetchResult.empty(empty(), FetchOutcome.AUTH_FAILED, "Momence token refresh failed", 401)
                attempt += 1
                continue

            if not response.is_success:
                logger.error(
                    "Momence API returned an error",
                    extra={
                        "operation": operation,
                        "path": path,
                        "status_code": response.status_code,
                        "body": response.text[:500],
                    }
                )
                return FetchResult.empty(
                    empty(),
                    FetchOutcome.UPSTREAM_ERROR,
                    f"Momence API error: {response.status_code}",
                    response.status_code,
                )

            try:
                data = response.json()
            except ValueError as e:
                logger.error(
                    "Momence response was not JSON",
                    extra={"operation": operation, "path": path, "error": str(e)}
                )
                return FetchResult.empty(
                    empty(), FetchOutcome.UPSTREAM_ERROR, "Malformed Momence response", response.status_code
                )

            logger.debug(
                "Momence request succeeded",
                extra={"operation": operation, "items": len(_payload(data)) if isinstance(data, dict) else 0}
            )
            return FetchResult.success(data, response.status_code)
