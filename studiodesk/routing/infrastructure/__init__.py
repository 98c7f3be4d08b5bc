"""
Routing Infrastructure Layer
============================

Infrastructure implementations for ticket routing and intake.

Contains:
- Models: SQLAlchemy ORM models
- Repositories: Data access implementations
- External: Slack escalation notifier
"""

from studiodesk.routing.infrastructure.models import TicketModel
from studiodesk.routing.infrastructure.repositories import SQLAlchemyTicketRepository
from studiodesk.routing.infrastructure.external import SlackEscalationNotifier

__all__ = [
    "TicketModel",
    "SQLAlchemyTicketRepository",
    "SlackEscalationNotifier",
]
