"""
Routing Value Objects
=====================

Deterministic routing rules layered over the classifier output, and
the priority merge used at ticket submission.
"""

from typing import Any, List, Mapping, Optional

from studiodesk.config import Priority, PRIORITY_ORDER, VALID_PRIORITIES
from studiodesk.config.lookup_tables import LookupTables
from studiodesk.routing.domain.entities import FALLBACK_DEPARTMENT, RoutingDecision


class ClassifierOutput:
    """
    Classifier answer before the override tables are applied.

    `department` may be None: the model is allowed to abstain, in which
    case the category default (if any) fills it in.
    """

    def __init__(
        self,
        department: Optional[str],
        priority: str,
        suggested_tags: List[str],
        needs_escalation: bool,
        escalation_reason: Optional[str],
        routing_confidence: float,
        analysis: str,
    ):
        self.department = department
        self.priority = priority
        self.suggested_tags = suggested_tags
        self.needs_escalation = needs_escalation
        self.escalation_reason = escalation_reason
        self.routing_confidence = routing_confidence
        self.analysis = analysis

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ClassifierOutput":
        """
        Read the classifier's JSON object leniently.

        Unknown priorities fall back to medium and confidence is clamped
        into [0, 1]; a non-object payload is the caller's problem.
        """
        department = data.get("department")
        if not isinstance(department, str) or not department.strip():
            department = None

        priority = str(data.get("priority") or "").lower()
        if priority not in VALID_PRIORITIES:
            priority = Priority.MEDIUM

        tags = data.get("suggestedTags")
        suggested_tags = [str(t) for t in tags if t] if isinstance(tags, list) else []

        try:
            confidence = float(data.get("routingConfidence", 0.0))
        except (TypeError, ValueError):
            confidence = 0.0
        confidence = min(1.0, max(0.0, confidence))

        reason = data.get("escalationReason")

        return cls(
            department=department.strip() if department else None,
            priority=priority,
            suggested_tags=suggested_tags,
            needs_escalation=bool(data.get("needsEscalation", False)),
            escalation_reason=str(reason) if reason else None,
            routing_confidence=confidence,
            analysis=str(data.get("analysis") or ""),
        )


class RoutingRules:
    """
    Applies the fixed routing tables to a classifier answer.

    Precedence:
    1. Subcategory override: always forces department, and priority when set.
    2. Category default: sets department only if no override matched and
       the classifier gave none or its confidence is below the threshold.
       Never touches priority.
    """

    def __init__(self, tables: LookupTables, confidence_threshold: float = 0.7):
        self._tables = tables
        self._threshold = confidence_threshold

    def apply(
        self,
        output: ClassifierOutput,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> RoutingDecision:
        department = output.department
        priority = output.priority

        override = self._tables.subcategory_overrides.get(subcategory) if subcategory else None
        if override is not None:
            department = override.department
            if override.priority:
                priority = override.priority

        category_route = self._tables.category_routing.get(category) if category else None
        if category_route is not None and override is None:
            if not department or output.routing_confidence < self._threshold:
                department = category_route.department

        return RoutingDecision(
            department=department or FALLBACK_DEPARTMENT,
            priority=priority,
            suggested_tags=list(output.suggested_tags),
            needs_escalation=output.needs_escalation,
            escalation_reason=output.escalation_reason,
            routing_confidence=output.routing_confidence,
            analysis=output.analysis,
        )


class PriorityPolicy:
    """Ordering of priorities on the scale low < medium < high < critical."""

    @staticmethod
    def rank(priority: Optional[str]) -> int:
        return PRIORITY_ORDER.index(priority) if priority in VALID_PRIORITIES else -1

    @classmethod
    def merge(cls, user_priority: str, suggested_priority: Optional[str]) -> str:
        """The suggested priority wins only when it ranks strictly higher."""
        if cls.rank(suggested_priority) > cls.rank(user_priority):
            return suggested_priority
        return user_priority

