"""
Shared Kernel Module
====================

Shared infrastructure used across both bounded contexts
(Members and Routing).

Architecture Pattern: Modular Monolith
- Each module (members, routing) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add member or routing business logic to the shared kernel.
"""
