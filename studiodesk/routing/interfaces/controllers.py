"""
Routing Controllers (API Routes)
================================

FastAPI routes for AI ticket routing and ticket intake.

Controllers delegate to application services.
"""

from typing import AsyncGenerator, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from studiodesk.infrastructure.database import get_session, is_initialized
from studiodesk.routing.application import (
    AnalyzeTicketRequest,
    CreateTicketRequest,
    IEscalationNotifier,
    ITicketRepository,
    RoutingDecisionResponse,
    RoutingService,
    TicketResponse,
    TicketSubmissionService,
)
from studiodesk.routing.domain import RoutingDecision, TicketAnalysisRequest
from studiodesk.routing.infrastructure import SQLAlchemyTicketRepository
from studiodesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Ticket Routing"])


# ========== Example payloads for Swagger ==========

ANALYZE_REQUEST_EXAMPLE = {
    "title": "Wallet stolen from locker room",
    "description": "Client reports her wallet was taken from an unlocked locker during the 7am class.",
    "category": "Safety & Security",
    "subcategory": "Theft",
    "studioId": "kwality-house"
}

ANALYZE_RESPONSE_EXAMPLE = {
    "department": "Security",
    "priority": "critical",
    "suggestedTags": ["theft", "locker-room"],
    "needsEscalation": True,
    "escalationReason": "Theft reported on premises",
    "routingConfidence": 0.92,
    "analysis": "Theft on studio premises requires immediate security follow-up."
}


# ========== Dependencies ==========

def get_routing_service(request: Request) -> RoutingService:
    service = getattr(request.app.state, "routing_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Routing service not initialized")
    return service


def get_escalation_notifier(request: Request) -> Optional[IEscalationNotifier]:
    return getattr(request.app.state, "escalation_notifier", None)


async def get_ticket_repository() -> AsyncGenerator[ITicketRepository, None]:
    if not is_initialized():
        raise HTTPException(status_code=503, detail="Database not available")
    async for session in get_session():
        yield SQLAlchemyTicketRepository(session)


def get_ticket_service(
    routing: RoutingService = Depends(get_routing_service),
    repository: ITicketRepository = Depends(get_ticket_repository),
    notifier: Optional[IEscalationNotifier] = Depends(get_escalation_notifier),
) -> TicketSubmissionService:
    return TicketSubmissionService(routing, repository, notifier)


# ========== Route Handlers ==========

@router.post(
    "/analyze-ticket",
    response_model=RoutingDecisionResponse,
    summary="Route a ticket",
    description="""
    Suggest department, priority, tags and escalation for a ticket.

    Subcategory overrides always win; the category default applies when the
    classifier is unsure. If classification is unavailable the response is
    the default assignment (`Operations`, `medium`, confidence 0).
    This endpoint always returns 200.
    """,
    responses={200: {"content": {"application/json": {"example": ANALYZE_RESPONSE_EXAMPLE}}}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {
                "schema": AnalyzeTicketRequest.model_json_schema(by_alias=True),
                "example": ANALYZE_REQUEST_EXAMPLE,
            }},
        }
    },
)
async def analyze_ticket(
    request: Request,
    service: RoutingService = Depends(get_routing_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    # Bad bodies get the fallback decision, never a 422.
    try:
        payload = AnalyzeTicketRequest.model_validate(await request.json())
    except ValueError as e:
        logger.warning(
            "Unreadable analyze-ticket body, using fallback decision",
            extra={"correlation_id": correlation_id, "error": str(e)}
        )
        return RoutingDecisionResponse.from_decision(RoutingDecision.fallback())

    decision = await service.analyze(
        TicketAnalysisRequest(
            title=payload.title,
            description=payload.description,
            category=payload.category,
            subcategory=payload.subcategory,
            studio_id=payload.studio_id,
        )
    )

    logger.info(
        "Ticket analyzed",
        extra={
            "correlation_id": correlation_id,
            "department": decision.department,
            "is_fallback": decision.is_fallback,
        }
    )

    return RoutingDecisionResponse.from_decision(decision)


@router.post(
    "/tickets",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a ticket",
    description="""
    Route, prioritise and store a new ticket.

    The final priority is the higher of the submitted priority and the
    routing suggestion. Escalated tickets trigger a Slack notification;
    notification failures do not affect creation.
    """
)
async def create_ticket(
    request: Request,
    payload: CreateTicketRequest,
    service: TicketSubmissionService = Depends(get_ticket_service)
):
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    logger.info(
        "Creating ticket",
        extra={"correlation_id": correlation_id, "studio_id": payload.studio_id}
    )

    customer = payload.customer.model_dump() if payload.customer else None

    ticket = await service.submit(
        studio_id=payload.studio_id,
        category_id=payload.category_id,
        category_name=payload.category_name,
        subcategory_id=payload.subcategory_id,
        subcategory_name=payload.subcategory_name,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        customer=customer,
        client_mood=payload.client_mood,
        incident_date_time=payload.incident_date_time,
        dynamic_fields=payload.dynamic_field_data,
        source=payload.source,
    )

    return TicketResponse.from_ticket(ticket)


routing_router = router
