"""
Routing Application Services
============================

Application services for AI-assisted ticket routing and ticket intake.

Orchestrates the classifier, the routing tables, persistence and
escalation notifications.
"""

import json
import random
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from studiodesk.config import TicketStatus, settings
from studiodesk.core import DuplicateKeyException
from studiodesk.infrastructure.llm import ILLMClient
from studiodesk.routing.domain import (
    ClassifierOutput,
    PriorityPolicy,
    RoutingDecision,
    RoutingPromptBuilder,
    RoutingRules,
    Ticket,
    TicketAnalysisRequest,
)
from studiodesk.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)

DEFAULT_ESCALATION_REASON = "High priority ticket requiring immediate attention"
MAX_TICKET_NUMBER_ATTEMPTS = 5


# ========== Repository Interfaces ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """Persist a new ticket and return it with its id set."""

    @abstractmethod
    async def get_by_ticket_number(self, ticket_number: str) -> Optional[Ticket]:
        """Get ticket by its human-readable number."""


class IEscalationNotifier(ABC):
    """Interface for escalation alerts."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when alerts can actually be delivered."""

    @abstractmethod
    async def notify_escalation(
        self,
        ticket: Ticket,
        reason: str,
        category: Optional[str] = None
    ) -> bool:
        """Send an escalation alert. Returns True if delivered."""


def generate_ticket_number(now: Optional[datetime] = None) -> str:
    """`TKT-YYMMDD-NNNN` with a random four-digit suffix."""
    now = now or datetime.now(timezone.utc)
    return f"TKT-{now:%y%m%d}-{random.randint(0, 9999):04d}"


# ========== Application Services ==========

class RoutingService:
    """
    Produces a routing decision for a ticket.

    Never raises: any classifier problem (no client, transport failure,
    unparseable answer) yields the fallback decision.
    """

    def __init__(
        self,
        llm_client: Optional[ILLMClient],
        rules: RoutingRules,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ):
        self._llm = llm_client
        self._rules = rules
        self._temperature = settings.llm_temperature if temperature is None else temperature
        self._max_tokens = max_tokens or settings.llm_max_tokens

    async def analyze(self, request: TicketAnalysisRequest) -> RoutingDecision:
        try:
            with log_latency(logger, "ticket_routing", category=request.category):
                output = await self._classify(request)
        except Exception as e:
            logger.warning(
                "Ticket routing failed, using fallback decision",
                extra={"error": str(e), "category": request.category, "subcategory": request.subcategory}
            )
            return RoutingDecision.fallback()

        decision = self._rules.apply(output, request.category, request.subcategory)
        logger.info(
            "Ticket routed",
            extra={
                "department": decision.department,
                "priority": decision.priority,
                "needs_escalation": decision.needs_escalation,
                "routing_confidence": decision.routing_confidence,
            }
        )
        return decision

    async def _classify(self, request: TicketAnalysisRequest) -> ClassifierOutput:
        if self._llm is None:
            raise RuntimeError("LLM client not configured")

        messages = [
            {"role": "system", "content": RoutingPromptBuilder.get_system_prompt()},
            {"role": "user", "content": RoutingPromptBuilder.build_prompt(request)}
        ]

        response = await self._llm.chat_completion(
            messages=messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            json_mode=True,
            operation="routing"
        )

        data = json.loads(response.content)
        if not isinstance(data, dict):
            raise ValueError("Classifier returned a non-object payload")

        return ClassifierOutput.from_json(data)


class TicketSubmissionService:
    """
    Ticket intake: route, merge priority, persist, escalate.

    Notification failures are logged and never block ticket creation.
    """

    def __init__(
        self,
        routing: RoutingService,
        repository: ITicketRepository,
        notifier: Optional[IEscalationNotifier] = None,
        number_factory: Callable[[], str] = generate_ticket_number,
    ):
        self._routing = routing
        self._repository = repository
        self._notifier = notifier
        self._number_factory = number_factory

    async def submit(
        self,
        studio_id: str,
        category_id: str,
        title: str,
        description: str,
        priority: str,
        category_name: Optional[str] = None,
        subcategory_id: Optional[str] = None,
        subcategory_name: Optional[str] = None,
        customer: Optional[Dict[str, Optional[str]]] = None,
        client_mood: Optional[str] = None,
        incident_date_time: Optional[datetime] = None,
        dynamic_fields: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
    ) -> Ticket:
        decision = await self._routing.analyze(
            TicketAnalysisRequest(
                title=title,
                description=description,
                category=category_name,
                subcategory=subcategory_name,
                studio_id=studio_id,
            )
        )

        field_data = dict(dynamic_fields or {})
        field_data["aiRouting"] = {
            "department": decision.department,
            "suggestedTags": list(decision.suggested_tags),
            "needsEscalation": decision.needs_escalation,
            "routingConfidence": decision.routing_confidence,
            "analysis": decision.analysis,
        }

        customer = customer or {}
        ticket = Ticket(
            ticket_number=self._number_factory(),
            studio_id=studio_id,
            category_id=category_id,
            subcategory_id=subcategory_id,
            priority=PriorityPolicy.merge(priority, decision.priority),
            title=title,
            description=description,
            customer_name=customer.get("name"),
            customer_email=customer.get("email"),
            customer_phone=customer.get("phone"),
            customer_membership_id=customer.get("membership_id"),
            customer_status=customer.get("status"),
            client_mood=client_mood,
            incident_date_time=incident_date_time,
            dynamic_field_data=field_data,
            source=source or "in-person",
            status=TicketStatus.ESCALATED if decision.needs_escalation else TicketStatus.NEW,
            tags=list(decision.suggested_tags),
        )

        ticket = await self._store(ticket)

        logger.info(
            "Ticket created",
            extra={
                "ticket_number": ticket.ticket_number,
                "priority": ticket.priority,
                "status": ticket.status,
                "department": decision.department,
            }
        )

        if decision.needs_escalation:
            await self._escalate(ticket, decision, category_name)

        return ticket

    async def _store(self, ticket: Ticket) -> Ticket:
        """Persist, drawing a fresh ticket number when the current one is taken."""
        for attempt in range(1, MAX_TICKET_NUMBER_ATTEMPTS + 1):
            try:
                return await self._repository.create(ticket)
            except DuplicateKeyException:
                if attempt == MAX_TICKET_NUMBER_ATTEMPTS:
                    raise
                logger.warning(
                    "Ticket number already taken, regenerating",
                    extra={"ticket_number": ticket.ticket_number, "attempt": attempt}
                )
                ticket.ticket_number = self._number_factory()

    async def _escalate(
        self,
        ticket: Ticket,
        decision: RoutingDecision,
        category_name: Optional[str]
    ) -> None:
        if self._notifier is None:
            logger.debug("No escalation notifier configured", extra={"ticket_number": ticket.ticket_number})
            return

        try:
            await self._notifier.notify_escalation(
                ticket,
                reason=decision.escalation_reason or DEFAULT_ESCALATION_REASON,
                category=category_name,
            )
        except Exception as e:
            logger.error(
                "Escalation notification failed",
                extra={"ticket_number": ticket.ticket_number, "error": str(e)}
            )
