"""
Routing Application Layer
=========================

Application layer for ticket routing and intake.

Contains:
- Services: routing decision, ticket submission
- Interfaces: ticket repository, escalation notifier
- DTOs: API request/response models
"""

from studiodesk.routing.application.dto import (
    AnalyzeTicketRequest,
    CreateTicketRequest,
    CustomerInfo,
    RoutingDecisionResponse,
    TicketResponse,
)
from studiodesk.routing.application.services import (
    DEFAULT_ESCALATION_REASON,
    IEscalationNotifier,
    ITicketRepository,
    RoutingService,
    TicketSubmissionService,
    generate_ticket_number,
)

__all__ = [
    # DTOs
    "AnalyzeTicketRequest",
    "CreateTicketRequest",
    "CustomerInfo",
    "RoutingDecisionResponse",
    "TicketResponse",
    # Interfaces
    "ITicketRepository",
    "IEscalationNotifier",
    # Services
    "DEFAULT_ESCALATION_REASON",
    "RoutingService",
    "TicketSubmissionService",
    "generate_ticket_number",
]
