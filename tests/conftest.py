"""Shared fixtures: a fake Momence host API and in-memory fakes for routing."""

import json
import os
from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

os.environ.setdefault("ENVIRONMENT", "test")

from studiodesk.config.lookup_tables import LookupTables  # noqa: E402
from studiodesk.core import DuplicateKeyException  # noqa: E402
from studiodesk.infrastructure.llm import ChatCompletionResult, ILLMClient  # noqa: E402
from studiodesk.members.infrastructure import MomenceClient, MomenceCredentials  # noqa: E402
from studiodesk.routing.application import IEscalationNotifier, ITicketRepository  # noqa: E402
from studiodesk.routing.domain import Ticket  # noqa: E402

BASE_URL = "https://momence.test/api/v2"
API_PREFIX = "/api/v2"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeMomence:
    """
    In-process stand-in for the Momence host API.

    Routes are keyed by path below /api/v2. A route may be a single
    handler or a list of responses served in order (the last repeats).
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, object] = {}
        self.issued_tokens = 0
        self.token_handler: Optional[Handler] = None

    # ----- setup -----

    def route(self, path: str, response) -> None:
        self.routes[path] = response

    def json_route(self, path: str, body, status_code: int = 200) -> None:
        self.routes[path] = httpx.Response(status_code, json=body)

    # ----- inspection -----

    @property
    def token_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"{API_PREFIX}/auth/token"]

    @property
    def api_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path != f"{API_PREFIX}/auth/token"]

    def requests_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"{API_PREFIX}{path}"]

    @staticmethod
    def form(request: httpx.Request) -> Dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}

    # ----- transport -----

    def _issue_token(self, request: httpx.Request) -> httpx.Response:
        self.issued_tokens += 1
        n = self.issued_tokens
        return httpx.Response(200, json={
            "access_token": f"access-{n}",
            "refresh_token": f"refresh-{n}",
            "token_type": "bearer",
        })

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]

        if path == "/auth/token":
            return (self.token_handler or self._issue_token)(request)

        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, json={"message": "not found"})
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if isinstance(route, httpx.Response):
            return httpx.Response(route.status_code, headers=route.headers, content=route.content)
        return route(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class FakeLLMClient(ILLMClient):
    """Returns a fixed reply, or raises when given an exception."""

    def __init__(self, reply=None, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[dict] = []

    async def chat_completion(
        self,
        messages,
        temperature=0.3,
        max_tokens=500,
        json_mode=False,
        operation="chat_completion"
    ) -> ChatCompletionResult:
        self.calls.append({"messages": messages, "json_mode": json_mode, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        content = self.reply if isinstance(self.reply, str) else json.dumps(self.reply)
        return ChatCompletionResult(content, "fake-model", 10, 10, 1)


class InMemoryTicketRepository(ITicketRepository):
    def __init__(self):
        self.tickets: Dict[str, Ticket] = {}

    async def create(self, ticket: Ticket) -> Ticket:
        if ticket.ticket_number in self.tickets:
            raise DuplicateKeyException(f"Ticket number {ticket.ticket_number} already exists")
        self.tickets[ticket.ticket_number] = ticket
        return ticket

    async def get_by_ticket_number(self, ticket_number: str) -> Optional[Ticket]:
        return self.tickets.get(ticket_number)


class RecordingNotifier(IEscalationNotifier):
    def __init__(self, error: Optional[Exception] = None, configured: bool = True):
        self.error = error
        self.configured = configured
        self.sent: List[dict] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def notify_escalation(self, ticket, reason, category=None) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append({"ticket": ticket, "reason": reason, "category": category})
        return True


def classifier_reply(**overrides) -> dict:
    reply = {
        "department": "Client Success",
        "priority": "medium",
        "suggestedTags": ["feedback"],
        "needsEscalation": False,
        "escalationReason": None,
        "routingConfidence": 0.9,
        "analysis": "General client feedback.",
    }
    reply.update(overrides)
    return reply


@pytest.fixture
def credentials() -> MomenceCredentials:
    return MomenceCredentials(
        base_url=BASE_URL,
        auth_token="YmFzaWMtYXV0aA==",
        username="frontdesk@studio.test",
        password="s3cret",
    )


@pytest.fixture
def fake_momence() -> FakeMomence:
    return FakeMomence()


@pytest.fixture
def momence_client(credentials, fake_momence) -> MomenceClient:
    return MomenceClient(credentials, fake_momence.client())


@pytest.fixture
def lookup_tables() -> LookupTables:
    return LookupTables()
