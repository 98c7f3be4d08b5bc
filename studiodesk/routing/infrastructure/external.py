"""
Routing External Service Integrations
=====================================

Slack webhook delivery for escalated tickets.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from studiodesk.config import settings
from studiodesk.routing.application import IEscalationNotifier
from studiodesk.routing.domain import Ticket
from studiodesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class SlackEscalationNotifier(IEscalationNotifier):
    """
    Slack webhook client for escalation alerts.

    Delivery is skipped when no webhook URL is configured. Failed posts
    are retried with exponential backoff; the last failure is returned
    as False, not raised.
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        channel: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
    ):
        self._webhook_url = webhook_url if webhook_url is not None else settings.slack_webhook_url
        self._channel = channel or settings.slack_channel
        self._http_client = http_client
        self._owns_client = http_client is None
        self._max_retries = max(1, max_retries)
        self._backoff_seconds = backoff_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self._webhook_url)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=settings.slack_timeout_seconds)
        return self._http_client

    def _build_message(self, ticket: Ticket, reason: str, category: Optional[str]) -> Dict[str, Any]:
        """Build Slack Block Kit message."""
        routing = ticket.ai_routing or {}

        blocks = [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": f"Escalated ticket {ticket.ticket_number}",
                }
            },
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Title:*\n{ticket.title}"},
                    {"type": "mrkdwn", "text": f"*Priority:*\n{ticket.priority.title()}"},
                    {"type": "mrkdwn", "text": f"*Category:*\n{category or 'Not specified'}"},
                    {"type": "mrkdwn", "text": f"*Department:*\n{routing.get('department', 'Unassigned')}"},
                    {"type": "mrkdwn", "text": f"*Studio:*\n{ticket.studio_id}"},
                ]
            },
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Escalation reason:*\n{reason}"}
            },
        ]

        return {
            "channel": self._channel,
            "text": f"Escalated ticket {ticket.ticket_number}: {ticket.title}",
            "blocks": blocks
        }

    async def notify_escalation(
        self,
        ticket: Ticket,
        reason: str,
        category: Optional[str] = None
    ) -> bool:
        if not self._webhook_url:
            logger.debug("Slack webhook URL not configured, skipping notification")
            return False

        message = self._build_message(ticket, reason, category)
        client = await self._get_client()

        for attempt in range(self._max_retries):
            try:
                response = await client.post(self._webhook_url, json=message)
                if response.status_code == 200:
                    logger.info(
                        "Escalation notification sent",
                        extra={"ticket_number": ticket.ticket_number}
                    )
                    return True
                logger.warning(
                    "Slack webhook returned non-200",
                    extra={"status_code": response.status_code, "attempt": attempt + 1}
                )
            except httpx.HTTPError as e:
                logger.error(
                    "Slack notification failed",
                    extra={"error": str(e), "attempt": attempt + 1, "ticket_number": ticket.ticket_number}
                )

            if attempt < self._max_retries - 1:
                await asyncio.sleep(self._backoff_seconds * 2 ** attempt)

        return False

    async def close(self) -> None:
        """Close the HTTP client if this notifier created it."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
