"""
Routing Application DTOs
========================

Pydantic models for the routing and ticket intake API layer.

Wire names are camelCase to match the intake UI.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from studiodesk.routing.domain import RoutingDecision, Ticket


PriorityStr = Literal["critical", "high", "medium", "low"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ========== Request DTOs ==========

class AnalyzeTicketRequest(_CamelModel):
    """Ticket text to route. Numeric ids are accepted as strings."""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    title: str = Field(default="", description="Ticket title")
    description: str = Field(default="", description="Ticket description")
    category: Optional[str] = Field(None, description="Category name")
    subcategory: Optional[str] = Field(None, description="Subcategory name")
    studio_id: Optional[str] = Field(None, alias="studioId")


class CustomerInfo(_CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    membership_id: Optional[str] = Field(None, alias="membershipId")
    status: Optional[str] = None


class CreateTicketRequest(_CamelModel):
    """Body of the ticket intake endpoint."""
    studio_id: str = Field(..., min_length=1, alias="studioId")
    category_id: str = Field(..., min_length=1, alias="categoryId")
    category_name: Optional[str] = Field(None, alias="categoryName")
    subcategory_id: Optional[str] = Field(None, alias="subcategoryId")
    subcategory_name: Optional[str] = Field(None, alias="subcategoryName")
    priority: PriorityStr = "medium"
    title: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=10)
    customer: Optional[CustomerInfo] = None
    client_mood: Optional[str] = Field(None, alias="clientMood")
    incident_date_time: Optional[datetime] = Field(None, alias="incidentDateTime")
    dynamic_field_data: Dict[str, Any] = Field(default_factory=dict, alias="dynamicFieldData")
    source: Optional[str] = None

    @field_validator("dynamic_field_data")
    @classmethod
    def drop_empty_values(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Unset form fields arrive as empty strings; they are not stored."""
        return {k: val for k, val in v.items() if val is not None and val != ""}


# ========== Response DTOs ==========

class RoutingDecisionResponse(_CamelModel):
    """Routing decision as returned to the intake UI."""
    department: str
    priority: PriorityStr
    suggested_tags: List[str] = Field(default_factory=list, alias="suggestedTags")
    needs_escalation: bool = Field(False, alias="needsEscalation")
    escalation_reason: Optional[str] = Field(None, alias="escalationReason")
    routing_confidence: float = Field(0.0, ge=0.0, le=1.0, alias="routingConfidence")
    analysis: str = ""

    @classmethod
    def from_decision(cls, decision: RoutingDecision) -> "RoutingDecisionResponse":
        return cls(
            department=decision.department,
            priority=decision.priority,
            suggested_tags=list(decision.suggested_tags),
            needs_escalation=decision.needs_escalation,
            escalation_reason=decision.escalation_reason,
            routing_confidence=decision.routing_confidence,
            analysis=decision.analysis,
        )


class TicketResponse(_CamelModel):
    id: Optional[UUID] = None
    ticket_number: str = Field(..., alias="ticketNumber")
    studio_id: str = Field(..., alias="studioId")
    category_id: str = Field(..., alias="categoryId")
    subcategory_id: Optional[str] = Field(None, alias="subcategoryId")
    priority: PriorityStr
    status: str
    title: str
    description: str
    tags: List[str]
    source: str
    dynamic_field_data: Dict[str, Any] = Field(..., alias="dynamicFieldData")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> "TicketResponse":
        return cls(
            id=ticket.id,
            ticket_number=ticket.ticket_number,
            studio_id=ticket.studio_id,
            category_id=ticket.category_id,
            subcategory_id=ticket.subcategory_id,
            priority=ticket.priority,
            status=ticket.status,
            title=ticket.title,
            description=ticket.description,
            tags=list(ticket.tags),
            source=ticket.source,
            dynamic_field_data=ticket.dynamic_field_data,
            created_at=ticket.created_at,
        )
