"""
StudioDesk - Main Application
=============================

Support desk backend for a chain of fitness studios.

Modules:
- Members: Momence member search, profiles and session aggregation
- Routing: AI-assisted ticket routing and ticket intake

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects, normalizers
- Infrastructure: Database, LLM, Momence and Slack clients
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration
from studiodesk.config import settings
from studiodesk.config.lookup_tables import load_lookup_tables

# Infrastructure
from studiodesk.infrastructure.database import (
    close_database,
    create_tables,
    init_database,
    is_initialized,
)
from studiodesk.infrastructure.llm import create_llm_client

# Members Module
from studiodesk.members.application import (
    MemberDirectoryService,
    MomenceProxyService,
    SessionAggregator,
)
from studiodesk.members.domain import LocationDirectory
from studiodesk.members.infrastructure import MomenceClient, MomenceCredentials, TokenManager
from studiodesk.members.interfaces import members_router

# Routing Module
from studiodesk.routing.application import RoutingService
from studiodesk.routing.domain import RoutingRules
from studiodesk.routing.infrastructure import SlackEscalationNotifier
from studiodesk.routing.interfaces import routing_router

# Logging and middleware
from studiodesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    global_exception_handler,
)
from studiodesk.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables (degraded mode if unavailable)
    3. Load routing and location lookup tables
    4. Build the Momence client and member/session services
    5. Build the LLM client, routing service and escalation notifier

    SHUTDOWN:
    1. Close Slack and Momence HTTP clients
    2. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting StudioDesk", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()
    try:
        await create_tables()
    except Exception as e:
        logger.warning(f"Database not available - running in degraded mode: {e}")
        await close_database()

    logger.info("Loading lookup tables", extra={"path": str(settings.lookup_tables_path)})
    tables = load_lookup_tables(settings.lookup_tables_path)

    # Momence
    http_client = httpx.AsyncClient(timeout=settings.momence_timeout_seconds)
    credentials = MomenceCredentials.from_settings(settings)
    momence_client = MomenceClient(credentials, http_client, TokenManager(credentials, http_client))
    locations = LocationDirectory(tables.locations)

    app.state.momence_client = momence_client
    app.state.momence_proxy = MomenceProxyService(momence_client)
    app.state.member_directory = MemberDirectoryService(momence_client)
    app.state.session_aggregator = SessionAggregator(
        momence_client, locations, page_size=settings.momence_page_size
    )

    # Routing
    logger.info("Initializing LLM client")
    try:
        llm_client = create_llm_client()
    except Exception as e:
        logger.warning(f"LLM client initialization failed: {e}")
        llm_client = None
    if llm_client is None:
        logger.warning("No LLM configured - ticket routing will use the default assignment")

    app.state.llm_client = llm_client
    app.state.routing_service = RoutingService(
        llm_client,
        RoutingRules(tables, settings.routing_confidence_threshold),
    )
    notifier = SlackEscalationNotifier()
    app.state.escalation_notifier = notifier

    logger.info("StudioDesk started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down StudioDesk")

    await notifier.close()
    await http_client.aclose()
    await close_database()

    logger.info("StudioDesk shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="StudioDesk API",
    description="""
    ## Studio Support Desk

    Ticket intake for front-desk staff, with member lookups against the
    Momence studio platform and AI-assisted routing.

    ---

    ### Members & Sessions

    - `POST /momence` - Action proxy used by the intake UI
    - `GET /members/search?q=` - Member search (2+ characters)
    - `GET /members/{id}` - Member profile with memberships and history
    - `GET /members/{id}/bookings` - Member bookings
    - `GET /sessions` - Past sessions across pages, with details
    - `GET /sessions/latest` - First page of sessions for a studio

    ### Ticket Routing

    - `POST /analyze-ticket` - Department, priority, tags and escalation
    - `POST /tickets` - Route, prioritise and store a ticket

    **Routing order:** subcategory override, then the classifier, then the
    category default when the classifier is unsure. If classification is
    unavailable tickets go to `Operations` at `medium`.
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware ===
# Last added runs first: the correlation id is set before request logging.
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(members_router)
app.include_router(routing_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "database": "connected",
                        "momence": "configured",
                        "llm_client": "available",
                        "slack": "not_configured"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports which integrations are configured. Missing integrations
    degrade features but never make the service unhealthy.
    """
    state = request.app.state
    momence = getattr(state, "momence_client", None)
    notifier = getattr(state, "escalation_notifier", None)

    checks = {
        "database": "connected" if is_initialized() else "unavailable",
        "momence": "configured" if momence is not None and momence.is_configured else "not_configured",
        "llm_client": "available" if getattr(state, "llm_client", None) else "not_configured",
        "slack": "configured" if notifier is not None and notifier.is_configured else "not_configured",
    }

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "StudioDesk",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "studiodesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
