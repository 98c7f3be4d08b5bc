"""
Members Infrastructure Layer
============================

Momence host API integration.

Contains:
- Auth: credential set and bearer-token lifecycle
- External: typed, 401-aware request operations
"""

from studiodesk.members.infrastructure.auth import MomenceCredentials, TokenManager
from studiodesk.members.infrastructure.external import (
    MomenceClient,
    empty_envelope,
    format_timestamp,
    start_of_next_day,
)

__all__ = [
    "MomenceCredentials",
    "TokenManager",
    "MomenceClient",
    "empty_envelope",
    "format_timestamp",
    "start_of_next_day",
]
