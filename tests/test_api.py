"""Tests for the FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient

from studiodesk.main import app
from studiodesk.members.application import (
    MemberDirectoryService,
    MomenceProxyService,
    SessionAggregator,
)
from studiodesk.members.domain import LocationDirectory
from studiodesk.members.infrastructure import MomenceClient
from studiodesk.routing.application import RoutingService
from studiodesk.routing.domain import RoutingRules
from studiodesk.routing.interfaces.controllers import get_ticket_repository
from tests.conftest import (
    FakeLLMClient,
    InMemoryTicketRepository,
    RecordingNotifier,
    classifier_reply,
)

STATE_KEYS = (
    "momence_client", "momence_proxy", "member_directory", "session_aggregator",
    "llm_client", "routing_service", "escalation_notifier",
)


@pytest.fixture
def wire_app(credentials, fake_momence, lookup_tables):
    """Install services on app state the way the lifespan does, with fakes underneath."""
    repository = InMemoryTicketRepository()
    notifier = RecordingNotifier()

    def install(llm=None):
        momence = MomenceClient(credentials, fake_momence.client())
        app.state.momence_client = momence
        app.state.momence_proxy = MomenceProxyService(momence)
        app.state.member_directory = MemberDirectoryService(momence)
        app.state.session_aggregator = SessionAggregator(momence, LocationDirectory(lookup_tables.locations))
        app.state.llm_client = llm
        app.state.routing_service = RoutingService(llm, RoutingRules(lookup_tables))
        app.state.escalation_notifier = notifier
        app.dependency_overrides[get_ticket_repository] = lambda: repository
        return TestClient(app)

    install.repository = repository
    install.notifier = notifier
    yield install

    app.dependency_overrides.clear()
    for key in STATE_KEYS:
        if hasattr(app.state, key):
            delattr(app.state, key)


# ── Health ───────────────────────────────────────────────────────────────

def test_root():
    resp = TestClient(app).get("/")
    assert resp.status_code == 200
    assert resp.json()["service"] == "StudioDesk"


def test_health_reports_integrations(wire_app):
    client = wire_app(llm=FakeLLMClient(classifier_reply()))

    resp = client.get("/health")

    assert resp.status_code == 200
    checks = resp.json()["checks"]
    assert checks["momence"] == "configured"
    assert checks["llm_client"] == "available"
    assert checks["slack"] == "configured"


def test_health_with_unconfigured_notifier(wire_app):
    client = wire_app()
    wire_app.notifier.configured = False

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.json()["checks"]["slack"] == "not_configured"
    assert resp.json()["checks"]["llm_client"] == "not_configured"


def test_correlation_id_is_echoed(wire_app):
    client = wire_app()
    resp = client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert resp.headers["X-Correlation-ID"] == "abc-123"


# ── Momence proxy ────────────────────────────────────────────────────────

def test_proxy_returns_raw_upstream_json(wire_app, fake_momence):
    body = {"payload": [{"id": 1, "firstName": "Priya", "extra": {"kept": True}}], "pagination": {"totalCount": 1}}
    fake_momence.json_route("/host/members", body)
    client = wire_app()

    resp = client.post("/momence", json={"action": "searchMembers", "query": "priya"})

    assert resp.status_code == 200
    assert resp.json() == body


@pytest.mark.parametrize("payload,error", [
    ({"query": "priya"}, "Unknown action: None"),
    ({"action": "dropTables"}, "Unknown action: dropTables"),
    ({"action": "getMemberSessions"}, "memberId is required"),
    ({"action": "getSessionDetails"}, "sessionId is required"),
])
def test_proxy_rejects_bad_requests(wire_app, fake_momence, payload, error):
    client = wire_app()

    resp = client.post("/momence", json=payload)

    assert resp.status_code == 500
    assert resp.json() == {"error": error}
    assert fake_momence.requests == []


@pytest.mark.parametrize("body", ["not json", '{"action": "getSessions", "page": -1}', "[]"])
def test_proxy_invalid_body_is_error_500(wire_app, fake_momence, body):
    client = wire_app()

    resp = client.post("/momence", content=body, headers={"content-type": "application/json"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Invalid request body"}
    assert fake_momence.requests == []


def test_proxy_passes_large_page_size_through(wire_app, fake_momence):
    fake_momence.json_route("/host/sessions", {"payload": [], "pagination": {"totalCount": 0}})
    client = wire_app()

    resp = client.post("/momence", json={"action": "getSessions", "pageSize": 1000})

    assert resp.status_code == 200
    assert fake_momence.api_requests[0].url.params["pageSize"] == "1000"


def test_proxy_accepts_numeric_ids(wire_app, fake_momence):
    fake_momence.json_route("/host/sessions/77", {"id": 77})
    client = wire_app()

    resp = client.post("/momence", json={"action": "getSessionDetails", "sessionId": 77})

    assert resp.status_code == 200
    assert resp.json() == {"id": 77}


def test_proxy_upstream_failure(wire_app, fake_momence):
    fake_momence.json_route("/host/sessions", {"message": "down"}, status_code=502)
    client = wire_app()

    resp = client.post("/momence", json={"action": "getSessions"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Momence API error: 502"}


# ── Members & sessions ───────────────────────────────────────────────────

def test_member_search_requires_two_characters(wire_app, fake_momence):
    client = wire_app()

    resp = client.get("/members/search", params={"q": "a"})

    assert resp.status_code == 200
    assert resp.json() == []
    assert fake_momence.requests == []


def test_member_search(wire_app, fake_momence):
    fake_momence.json_route("/host/members", {"payload": [{"id": 5, "firstName": "Isha", "visits": {"total": 3}}]})
    client = wire_app()

    resp = client.get("/members/search", params={"q": "isha"})

    member = resp.json()[0]
    assert member["id"] == "5"
    assert member["full_name"] == "Isha"
    assert member["activity_level"] == "beginner"


def test_member_profile_not_found(wire_app, fake_momence):
    fake_momence.json_route("/host/members/999", {"message": "missing"}, status_code=404)
    client = wire_app()

    assert client.get("/members/999").status_code == 404


def test_member_profile(wire_app, fake_momence):
    fake_momence.json_route("/host/members/5", {"id": 5, "firstName": "Isha"})
    fake_momence.json_route("/host/members/5/sessions", {"payload": []})
    fake_momence.json_route("/host/members/5/bought-memberships/active", {"payload": []})
    client = wire_app()

    resp = client.get("/members/5")

    assert resp.status_code == 200
    profile = resp.json()
    assert profile["membership_status"] == "inactive"
    assert profile["current_membership"] is None
    assert profile["last_session"] is None


def test_sessions_listing(wire_app, fake_momence):
    fake_momence.json_route("/host/sessions", {
        "payload": [{"id": 1, "name": "Barre 57", "capacity": 4, "bookingCount": 1}],
        "pagination": {"totalCount": 1},
    })
    fake_momence.json_route("/host/sessions/1", {"id": 1, "isDraft": True})
    client = wire_app()

    resp = client.get("/sessions", params={"location": "Kwality House"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["count"] == 1
    assert data["location_id"] == "9030"
    session = data["sessions"][0]
    assert session["utilization_rate"] == 25
    assert session["status"] == "Draft"
    assert session["has_details"] is True


# ── Routing ──────────────────────────────────────────────────────────────

def test_analyze_ticket_live(wire_app):
    client = wire_app(llm=FakeLLMClient(classifier_reply(suggestedTags=["theft"], needsEscalation=True)))

    resp = client.post("/analyze-ticket", json={
        "title": "Wallet stolen",
        "description": "Wallet taken from locker",
        "category": "Customer Service",
        "subcategory": "Theft",
        "studioId": "kwality-house",
    })

    assert resp.status_code == 200
    assert resp.json() == {
        "department": "Security",
        "priority": "critical",
        "suggestedTags": ["theft"],
        "needsEscalation": True,
        "escalationReason": None,
        "routingConfidence": 0.9,
        "analysis": "General client feedback.",
    }


def test_analyze_ticket_without_llm_is_still_ok(wire_app):
    client = wire_app(llm=None)

    resp = client.post("/analyze-ticket", json={"title": "Hello", "description": "Question"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["department"] == "Operations"
    assert data["priority"] == "medium"
    assert data["routingConfidence"] == 0.0


def test_analyze_ticket_accepts_numeric_studio_id(wire_app):
    llm = FakeLLMClient(classifier_reply())
    client = wire_app(llm=llm)

    resp = client.post("/analyze-ticket", json={"title": "Leak", "description": "Water on floor", "studioId": 9030})

    assert resp.status_code == 200
    assert resp.json()["department"] == "Client Success"
    assert len(llm.calls) == 1


@pytest.mark.parametrize("body", ["not json", "[1, 2]", '{"title": null}', ""])
def test_analyze_ticket_bad_body_gives_fallback(wire_app, body):
    llm = FakeLLMClient(classifier_reply())
    client = wire_app(llm=llm)

    resp = client.post("/analyze-ticket", content=body, headers={"content-type": "application/json"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["department"] == "Operations"
    assert data["priority"] == "medium"
    assert data["routingConfidence"] == 0.0
    assert llm.calls == []


def test_create_ticket(wire_app):
    client = wire_app(llm=FakeLLMClient(classifier_reply(needsEscalation=True, priority="high")))

    resp = client.post("/tickets", json={
        "studioId": "kwality-house",
        "categoryId": "cat-7",
        "categoryName": "Customer Service",
        "priority": "low",
        "title": "Rude front desk",
        "description": "Client says the front desk was rude at check-in.",
        "customer": {"name": "Isha", "membershipId": "M-5"},
        "dynamicFieldData": {"trainer": "", "className": "Barre 57"},
    })

    assert resp.status_code == 201
    data = resp.json()
    assert data["ticketNumber"].startswith("TKT-")
    assert data["priority"] == "high"
    assert data["status"] == "escalated"
    assert data["dynamicFieldData"]["className"] == "Barre 57"
    assert "trainer" not in data["dynamicFieldData"]
    assert data["dynamicFieldData"]["aiRouting"]["department"] == "Client Success"

    stored = wire_app.repository.tickets[data["ticketNumber"]]
    assert stored.customer_membership_id == "M-5"
    assert wire_app.notifier.sent[0]["ticket"] is stored


def test_create_ticket_validation(wire_app):
    client = wire_app()
    resp = client.post("/tickets", json={"studioId": "s", "categoryId": "c", "title": "Hi", "description": "short"})
    assert resp.status_code == 422
