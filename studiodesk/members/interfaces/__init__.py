"""
Members Interfaces Layer
========================

FastAPI route handlers for member search, profiles, session listings and
the Momence action proxy.
"""

from studiodesk.members.interfaces.controllers import members_router

__all__ = ["members_router"]
