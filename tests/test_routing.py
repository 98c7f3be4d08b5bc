"""Tests for the routing decision engine."""

import pytest

from studiodesk.core import LLMException
from studiodesk.routing.application import RoutingService
from studiodesk.routing.domain import (
    FALLBACK_ANALYSIS,
    ClassifierOutput,
    PriorityPolicy,
    RoutingDecision,
    RoutingRules,
    TicketAnalysisRequest,
)
from tests.conftest import FakeLLMClient, classifier_reply


def output(**overrides) -> ClassifierOutput:
    return ClassifierOutput.from_json(classifier_reply(**overrides))


@pytest.fixture
def rules(lookup_tables) -> RoutingRules:
    return RoutingRules(lookup_tables, confidence_threshold=0.7)


# ── Override tables ──────────────────────────────────────────────────────

class TestRoutingRules:

    @pytest.mark.parametrize("confidence", [0.0, 0.5, 0.95])
    def test_theft_always_goes_to_security_critical(self, rules, confidence):
        decision = rules.apply(
            output(department="Client Success", priority="low", routingConfidence=confidence),
            category="Customer Service",
            subcategory="Theft",
        )
        assert decision.department == "Security"
        assert decision.priority == "critical"

    def test_confident_classifier_keeps_its_department(self, rules):
        decision = rules.apply(output(department="Marketing", routingConfidence=0.9), category="Customer Service")
        assert decision.department == "Marketing"

    def test_threshold_itself_counts_as_confident(self, rules):
        decision = rules.apply(output(department="Marketing", routingConfidence=0.7), category="Customer Service")
        assert decision.department == "Marketing"

    def test_unsure_classifier_gets_category_default(self, rules):
        decision = rules.apply(
            output(department="Marketing", priority="high", routingConfidence=0.5),
            category="Customer Service",
        )
        assert decision.department == "Client Success"
        assert decision.priority == "high"

    def test_missing_department_gets_category_default(self, rules):
        decision = rules.apply(output(department=None, routingConfidence=0.99), category="Booking & Technology")
        assert decision.department == "IT/Tech Support"

    def test_missing_department_without_category_match(self, rules):
        decision = rules.apply(output(department="", routingConfidence=0.99), category="Unknown")
        assert decision.department == "Operations"

    def test_override_without_classifier_priority_change(self, rules):
        decision = rules.apply(output(priority="low"), subcategory="Payment Processing")
        assert decision.department == "Finance"
        assert decision.priority == "high"

    def test_other_fields_pass_through(self, rules):
        decision = rules.apply(output(
            suggestedTags=["injury", "urgent"],
            needsEscalation=True,
            escalationReason="Client hurt",
            analysis="Injury in class.",
        ), subcategory="Injury During Class")

        assert decision.suggested_tags == ["injury", "urgent"]
        assert decision.needs_escalation is True
        assert decision.escalation_reason == "Client hurt"
        assert decision.analysis == "Injury in class."
        assert decision.is_fallback is False


# ── Classifier parsing ───────────────────────────────────────────────────

def test_invalid_priority_becomes_medium():
    assert output(priority="URGENT!!").priority == "medium"


def test_priority_is_case_insensitive():
    assert output(priority="High").priority == "high"


def test_confidence_is_clamped():
    assert output(routingConfidence=3).routing_confidence == 1.0
    assert output(routingConfidence=-1).routing_confidence == 0.0
    assert output(routingConfidence="n/a").routing_confidence == 0.0


def test_non_list_tags_are_dropped():
    assert output(suggestedTags="billing").suggested_tags == []


# ── Priority merge ───────────────────────────────────────────────────────

@pytest.mark.parametrize("user,suggested,final", [
    ("medium", "critical", "critical"),
    ("high", "low", "high"),
    ("low", "low", "low"),
    ("low", None, "low"),
    ("medium", "bogus", "medium"),
])
def test_priority_merge(user, suggested, final):
    assert PriorityPolicy.merge(user, suggested) == final


def test_decision_rejects_out_of_range_confidence():
    with pytest.raises(ValueError):
        RoutingDecision(department="Operations", priority="medium", routing_confidence=1.5)


# ── Routing service ──────────────────────────────────────────────────────

REQUEST = TicketAnalysisRequest(
    title="Locker theft",
    description="Wallet taken from locker during 7am class",
    category="Customer Service",
    subcategory="Theft",
    studio_id="kwality-house",
)


def assert_fallback(decision: RoutingDecision):
    assert decision.department == "Operations"
    assert decision.priority == "medium"
    assert decision.suggested_tags == []
    assert decision.needs_escalation is False
    assert decision.routing_confidence == 0.0
    assert decision.analysis == FALLBACK_ANALYSIS
    assert decision.is_fallback is True


class TestRoutingService:

    @pytest.mark.asyncio
    async def test_live_decision_applies_overrides(self, rules):
        llm = FakeLLMClient(classifier_reply(department="Client Success", priority="medium"))
        service = RoutingService(llm, rules, max_tokens=500)

        decision = await service.analyze(REQUEST)

        assert decision.department == "Security"
        assert decision.priority == "critical"
        call = llm.calls[0]
        assert call["json_mode"] is True
        assert call["max_tokens"] == 500
        prompt = call["messages"][1]["content"]
        assert "Locker theft" in prompt
        assert "Subcategory: Theft" in prompt

    @pytest.mark.asyncio
    async def test_prompt_marks_missing_fields(self, rules):
        llm = FakeLLMClient(classifier_reply())
        service = RoutingService(llm, rules)

        await service.analyze(TicketAnalysisRequest(title="Hi", description="Question"))

        prompt = llm.calls[0]["messages"][1]["content"]
        assert "Category: Not specified" in prompt
        assert "Studio: Not specified" in prompt

    @pytest.mark.asyncio
    async def test_no_client_falls_back(self, rules):
        assert_fallback(await RoutingService(None, rules).analyze(REQUEST))

    @pytest.mark.asyncio
    async def test_llm_error_falls_back(self, rules):
        llm = FakeLLMClient(error=LLMException("rate limited"))
        assert_fallback(await RoutingService(llm, rules).analyze(REQUEST))

    @pytest.mark.asyncio
    async def test_malformed_json_falls_back(self, rules):
        llm = FakeLLMClient("department: Security")
        assert_fallback(await RoutingService(llm, rules).analyze(REQUEST))

    @pytest.mark.asyncio
    async def test_non_object_json_falls_back(self, rules):
        llm = FakeLLMClient('["Security"]')
        assert_fallback(await RoutingService(llm, rules).analyze(REQUEST))

    @pytest.mark.asyncio
    async def test_fallback_ignores_overrides(self, rules):
        decision = await RoutingService(None, rules).analyze(REQUEST)
        assert decision.department != "Security"
