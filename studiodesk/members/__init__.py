"""
Members Module
==============

Bounded Context for the Momence member/session platform.

Responsibilities:
- Bearer-token lifecycle against the Momence host API
- Member search, member profiles, session listings
- Multi-page session aggregation with detail enrichment
- Normalizing raw payloads into canonical member/session shapes
"""
