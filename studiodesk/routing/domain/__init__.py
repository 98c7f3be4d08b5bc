"""
Routing Domain Layer
====================

Domain layer for ticket routing and intake.

Contains:
- Entities: RoutingDecision, TicketAnalysisRequest, Ticket, RoutingPromptBuilder
- Value Objects: ClassifierOutput, RoutingRules, PriorityPolicy

This layer is framework-agnostic and contains pure business logic.
"""

from studiodesk.routing.domain.entities import (
    DEPARTMENTS,
    FALLBACK_ANALYSIS,
    FALLBACK_DEPARTMENT,
    TicketAnalysisRequest,
    RoutingDecision,
    Ticket,
    RoutingPromptBuilder,
)
from studiodesk.routing.domain.value_objects import (
    ClassifierOutput,
    RoutingRules,
    PriorityPolicy,
)

__all__ = [
    "DEPARTMENTS",
    "FALLBACK_ANALYSIS",
    "FALLBACK_DEPARTMENT",
    "TicketAnalysisRequest",
    "RoutingDecision",
    "Ticket",
    "RoutingPromptBuilder",
    "ClassifierOutput",
    "RoutingRules",
    "PriorityPolicy",
]
