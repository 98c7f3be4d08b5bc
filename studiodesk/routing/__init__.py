"""
Routing Module
==============

Bounded Context for AI-assisted ticket routing and ticket intake.

Responsibilities:
- Classifier call and lenient parsing of its JSON answer
- Subcategory override and category default tables
- Fallback decision when classification is unavailable
- Priority merge, ticket persistence and escalation alerts
"""
