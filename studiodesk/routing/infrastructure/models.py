"""
Routing Infrastructure Models
=============================

SQLAlchemy ORM models for ticket intake.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from studiodesk.config import Priority, TicketStatus
from studiodesk.infrastructure.database import Base


class TicketModel(Base):
    """
    Database model for the Ticket entity.

    The routing decision is stored inside `dynamic_field_data` under
    `aiRouting`, next to the category-specific form fields.
    """
    __tablename__ = "tickets"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Business identifier
    ticket_number: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)

    # Classification
    studio_id: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    category_id: Mapped[str] = mapped_column(String(100), nullable=False)
    subcategory_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=Priority.MEDIUM)
    status: Mapped[str] = mapped_column(String(20), index=True, nullable=False, default=TicketStatus.NEW)

    # Content
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Customer
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    customer_membership_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    customer_status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    client_mood: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    incident_date_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    dynamic_field_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="in-person")

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
