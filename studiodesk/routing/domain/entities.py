"""
Routing Domain Entities
=======================

Domain entities for AI-assisted ticket routing and ticket intake.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from studiodesk.config import Priority, TicketStatus

FALLBACK_DEPARTMENT = "Operations"
FALLBACK_ANALYSIS = "Auto-routing failed, using default assignment"

DEPARTMENTS = [
    "Operations", "Facilities", "Training", "Sales", "Client Success",
    "Marketing", "Finance", "Management", "IT/Tech Support", "HR", "Security",
]


@dataclass(frozen=True)
class TicketAnalysisRequest:
    """The ticket fields the classifier sees."""
    title: str
    description: str
    category: Optional[str] = None
    subcategory: Optional[str] = None
    studio_id: Optional[str] = None


@dataclass(frozen=True)
class RoutingDecision:
    """
    Department, priority and escalation for one ticket submission.

    Immutable: overrides produce a new decision.
    """
    department: str
    priority: str
    suggested_tags: List[str] = field(default_factory=list)
    needs_escalation: bool = False
    escalation_reason: Optional[str] = None
    routing_confidence: float = 0.0
    analysis: str = ""
    is_fallback: bool = False

    def __post_init__(self):
        if not 0.0 <= self.routing_confidence <= 1.0:
            raise ValueError("routing_confidence must be between 0 and 1")

    @classmethod
    def fallback(cls) -> "RoutingDecision":
        """Degraded decision used whenever classification is unavailable."""
        return cls(
            department=FALLBACK_DEPARTMENT,
            priority=Priority.MEDIUM,
            suggested_tags=[],
            needs_escalation=False,
            escalation_reason=None,
            routing_confidence=0.0,
            analysis=FALLBACK_ANALYSIS,
            is_fallback=True,
        )


@dataclass
class Ticket:
    """A support ticket as assembled at intake."""
    ticket_number: str
    studio_id: str
    category_id: str
    priority: str
    title: str
    description: str
    subcategory_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_membership_id: Optional[str] = None
    customer_status: Optional[str] = None
    client_mood: Optional[str] = None
    incident_date_time: Optional[datetime] = None
    dynamic_field_data: Dict[str, Any] = field(default_factory=dict)
    source: str = "in-person"
    status: str = TicketStatus.NEW
    tags: List[str] = field(default_factory=list)
    id: Optional[UUID] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ai_routing(self) -> Optional[Dict[str, Any]]:
        return self.dynamic_field_data.get("aiRouting")


class RoutingPromptBuilder:
    """
    Builds prompts for ticket routing.

    All prompt text lives here.
    """

    SYSTEM_PROMPT = f"""You are an intelligent ticket routing assistant for a fitness studio chain. Analyze the ticket content and determine:
1. The most appropriate department to handle this ticket
2. Suggested priority level (critical, high, medium, low)
3. Any tags that should be applied
4. Whether this needs immediate escalation

Available departments: {', '.join(DEPARTMENTS)}

Priority guidelines:
- CRITICAL: Safety incidents, medical emergencies, theft, security breaches, major system outages
- HIGH: Payment issues, customer complaints, staff misconduct, urgent technical problems
- MEDIUM: General inquiries, booking issues, feedback, routine requests
- LOW: Feature requests, general feedback, non-urgent matters

Respond with a JSON object containing:
{{
  "department": "string",
  "priority": "critical|high|medium|low",
  "suggestedTags": ["tag1", "tag2"],
  "needsEscalation": boolean,
  "escalationReason": "string or null",
  "routingConfidence": 0.0-1.0,
  "analysis": "brief explanation of routing decision"
}}"""

    @classmethod
    def build_prompt(cls, request: TicketAnalysisRequest) -> str:
        return f"""Analyze this ticket:
Title: {request.title}
Description: {request.description}
Category: {request.category or 'Not specified'}
Subcategory: {request.subcategory or 'Not specified'}
Studio: {request.studio_id or 'Not specified'}

Determine the best department, priority, and routing for this ticket."""

    @classmethod
    def get_system_prompt(cls) -> str:
        return cls.SYSTEM_PROMPT
