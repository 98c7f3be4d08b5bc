"""
Members Controllers (API Routes)
================================

FastAPI routes for Momence member and session lookups.

Controllers delegate to application services held on app state.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from studiodesk.config import settings
from studiodesk.core import ValidationException
from studiodesk.members.application import (
    MemberDirectoryService,
    MemberInfo,
    MemberProfileResponse,
    MemberSessionInfo,
    MomenceProxyRequest,
    MomenceProxyService,
    SessionAggregator,
    SessionInfo,
    SessionListResponse,
)
from studiodesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Members & Sessions"])


# ========== Example payloads for Swagger ==========

PROXY_REQUEST_EXAMPLE = {
    "action": "searchMembers",
    "query": "priya",
    "page": 0,
    "pageSize": 100
}

PROXY_RESPONSE_EXAMPLE = {
    "payload": [
        {"id": 1042, "firstName": "Priya", "lastName": "Shah", "email": "priya@example.com"}
    ],
    "pagination": {"totalCount": 1, "page": 0, "pageSize": 100}
}


# ========== Dependencies ==========

def _service(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=503, detail="Momence integration not initialized")
    return service


def get_proxy_service(request: Request) -> MomenceProxyService:
    return _service(request, "momence_proxy")


def get_member_directory(request: Request) -> MemberDirectoryService:
    return _service(request, "member_directory")


def get_session_aggregator(request: Request) -> SessionAggregator:
    return _service(request, "session_aggregator")


# ========== Route Handlers ==========

@router.post(
    "/momence",
    summary="Momence action proxy",
    description="""
    Single dispatch endpoint for the intake UI.

    **Actions**: `searchMembers`, `getMemberSessions`, `getMemberMemberships`,
    `getSessions`, `getSessionDetails`.

    Returns the upstream JSON unchanged, or `{"error": "..."}` with HTTP 500.
    """,
    responses={
        200: {"content": {"application/json": {"example": PROXY_RESPONSE_EXAMPLE}}},
        500: {"content": {"application/json": {"example": {"error": "Momence API error: 502"}}}},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {
                "schema": MomenceProxyRequest.model_json_schema(by_alias=True),
                "example": PROXY_REQUEST_EXAMPLE,
            }},
        }
    },
)
async def momence_proxy(
    request: Request,
    service: MomenceProxyService = Depends(get_proxy_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    # Every failure on this route is {"error": ...} with a 500, never a 422.
    try:
        payload = MomenceProxyRequest.model_validate(await request.json())
    except ValueError as e:
        logger.warning(
            "Momence proxy received an invalid body",
            extra={"correlation_id": correlation_id, "error": str(e)}
        )
        return JSONResponse(status_code=500, content={"error": "Invalid request body"})

    try:
        result = await service.dispatch(
            action=payload.action,
            query=payload.query,
            member_id=payload.member_id,
            session_id=payload.session_id,
            page=payload.page,
            page_size=payload.page_size,
        )
    except ValidationException as e:
        logger.warning(
            "Momence proxy rejected request",
            extra={"correlation_id": correlation_id, "action": payload.action, "error": e.message}
        )
        return JSONResponse(status_code=500, content={"error": e.message})

    if not result.ok:
        logger.error(
            "Momence proxy action failed",
            extra={
                "correlation_id": correlation_id,
                "action": payload.action,
                "outcome": result.outcome,
                "reason": result.reason,
            }
        )
        return JSONResponse(status_code=500, content={"error": result.reason or "Unknown error"})

    return JSONResponse(status_code=200, content=result.value)


@router.get(
    "/members/search",
    response_model=List[MemberInfo],
    summary="Search members",
    description="Search Momence members by name, email or phone. Queries shorter than 2 characters return an empty list."
)
async def search_members(
    q: str = Query("", description="Search text"),
    service: MemberDirectoryService = Depends(get_member_directory)
):
    members = await service.search_members(q)
    return [MemberInfo.model_validate(m) for m in members]


@router.get(
    "/members/{member_id}",
    response_model=MemberProfileResponse,
    summary="Get member profile",
    description="Member detail with recent sessions, active memberships and derived status fields.",
    responses={404: {"description": "Member not found or Momence unavailable"}}
)
async def get_member_profile(
    member_id: str,
    service: MemberDirectoryService = Depends(get_member_directory)
):
    profile = await service.get_member_profile(member_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"Member {member_id} not found")
    return MemberProfileResponse.model_validate(profile)


@router.get(
    "/sessions",
    response_model=SessionListResponse,
    summary="List sessions with details",
    description="""
    Aggregate past sessions across pages, enriching each with its detail record.

    `location` is a studio name; unknown names list every location.
    """
)
async def list_sessions(
    location: Optional[str] = Query(None, description="Studio name"),
    max_pages: int = Query(settings.momence_max_pages, ge=1, le=20),
    starts_before: Optional[str] = Query(None, description="ISO-8601 upper bound on start time"),
    aggregator: SessionAggregator = Depends(get_session_aggregator)
):
    sessions = await aggregator.list_sessions(
        max_pages=max_pages,
        starts_before=starts_before,
        location_name=location,
    )
    return SessionListResponse(
        sessions=[SessionInfo.model_validate(s) for s in sessions],
        count=len(sessions),
        location_id=aggregator.resolve_location(location),
    )


@router.get(
    "/members/{member_id}/bookings",
    response_model=List[MemberSessionInfo],
    summary="Get member bookings",
    description="Bookings for a member. Empty when Momence is unavailable."
)
async def get_member_bookings(
    member_id: str,
    service: MemberDirectoryService = Depends(get_member_directory)
):
    bookings = await service.get_member_bookings(member_id)
    return [MemberSessionInfo.model_validate(b) for b in bookings]


@router.get(
    "/sessions/latest",
    summary="Latest sessions for a studio",
    description="First page of sessions for a studio as returned by Momence, without detail records.",
    responses={500: {"content": {"application/json": {"example": {"error": "Momence API error: 502"}}}}}
)
async def get_sessions_by_location(
    location: Optional[str] = Query(None, description="Studio name"),
    aggregator: SessionAggregator = Depends(get_session_aggregator)
):
    result = await aggregator.get_sessions_by_location(location)
    if not result.ok:
        return JSONResponse(status_code=500, content={"error": result.reason or "Unknown error"})
    return JSONResponse(status_code=200, content=result.value)


members_router = router
