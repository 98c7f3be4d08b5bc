"""
Routing Interfaces Layer
========================

HTTP API for ticket routing and intake.
"""

from studiodesk.routing.interfaces.controllers import routing_router

__all__ = ["routing_router"]
