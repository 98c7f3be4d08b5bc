"""
Routing Infrastructure Repositories
===================================

SQLAlchemy implementation of the ticket repository.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studiodesk.core import DuplicateKeyException, RepositoryException
from studiodesk.routing.application import ITicketRepository
from studiodesk.routing.domain import Ticket
from studiodesk.routing.infrastructure.models import TicketModel


class SQLAlchemyTicketRepository(ITicketRepository):
    """SQLAlchemy implementation for tickets."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            id=ticket.id or uuid4(),
            ticket_number=ticket.ticket_number,
            studio_id=ticket.studio_id,
            category_id=ticket.category_id,
            subcategory_id=ticket.subcategory_id,
            priority=ticket.priority,
            status=ticket.status,
            title=ticket.title,
            description=ticket.description,
            customer_name=ticket.customer_name,
            customer_email=ticket.customer_email,
            customer_phone=ticket.customer_phone,
            customer_membership_id=ticket.customer_membership_id,
            customer_status=ticket.customer_status,
            client_mood=ticket.client_mood,
            incident_date_time=ticket.incident_date_time,
            dynamic_field_data=ticket.dynamic_field_data,
            tags=list(ticket.tags),
            source=ticket.source,
            created_at=ticket.created_at,
        )

        try:
            self._session.add(model)
            await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            raise DuplicateKeyException(
                f"Ticket number {ticket.ticket_number} already exists",
                details={"error": str(e)}
            )
        except SQLAlchemyError as e:
            raise RepositoryException(
                f"Failed to store ticket {ticket.ticket_number}",
                details={"error": str(e)}
            )

        return self._to_entity(model)

    async def get_by_ticket_number(self, ticket_number: str) -> Optional[Ticket]:
        stmt = select(TicketModel).where(TicketModel.ticket_number == ticket_number)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    @staticmethod
    def _to_entity(model: TicketModel) -> Ticket:
        return Ticket(
            id=model.id,
            ticket_number=model.ticket_number,
            studio_id=model.studio_id,
            category_id=model.category_id,
            subcategory_id=model.subcategory_id,
            priority=model.priority,
            status=model.status,
            title=model.title,
            description=model.description,
            customer_name=model.customer_name,
            customer_email=model.customer_email,
            customer_phone=model.customer_phone,
            customer_membership_id=model.customer_membership_id,
            customer_status=model.customer_status,
            client_mood=model.client_mood,
            incident_date_time=model.incident_date_time,
            dynamic_field_data=dict(model.dynamic_field_data or {}),
            tags=list(model.tags or []),
            source=model.source,
            created_at=model.created_at,
        )
