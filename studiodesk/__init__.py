"""
StudioDesk
==========

Support-ticket intake backend for a fitness-studio chain.

Bounded contexts:
- members: Momence member/session platform client, aggregation, normalization
- routing: AI-assisted ticket routing and ticket submission
"""

__version__ = "1.0.0"
