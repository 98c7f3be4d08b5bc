"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="studiodesk", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/studiodesk",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Momence Platform ==========
    momence_base_url: str = Field(
        default="https://api.momence.com/api/v2",
        description="Momence API base URL"
    )
    momence_auth_token: Optional[str] = Field(
        default=None,
        description="Basic auth token for the Momence token endpoint"
    )
    momence_username: Optional[str] = Field(default=None, description="Momence host username")
    momence_password: Optional[str] = Field(default=None, description="Momence host password")
    momence_page_size: int = Field(
        default=200,
        description="Page size used when aggregating sessions",
        ge=1,
        le=500
    )
    momence_max_pages: int = Field(
        default=5,
        description="Default page cap for session aggregation",
        ge=1
    )
    momence_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for Momence API calls",
        ge=1
    )

    # ========== LLM Settings ==========
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key for ticket routing"
    )
    mock_llm: bool = Field(
        default=False,
        description="Use mock LLM responses for testing (no API calls)"
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        description="Model used for ticket routing"
    )
    llm_temperature: float = Field(
        default=0.3,
        description="Default temperature for LLM",
        ge=0.0,
        le=1.0
    )
    llm_max_tokens: int = Field(
        default=500,
        description="Max tokens for the routing completion",
        ge=1,
        le=8000
    )

    # ========== Routing ==========
    lookup_tables_path: Path = Field(
        default=Path("lookup_tables.yaml"),
        description="Path to the routing/location lookup tables YAML file"
    )
    routing_confidence_threshold: float = Field(
        default=0.7,
        description="Below this confidence the category default department applies",
        ge=0.0,
        le=1.0
    )

    # ========== Slack Integration ==========
    slack_webhook_url: Optional[str] = Field(
        default=None,
        description="Slack webhook URL for escalation notifications"
    )
    slack_channel: str = Field(
        default="#ticket-escalations",
        description="Slack channel for escalation notifications"
    )
    slack_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for Slack API calls",
        ge=0.1,
        le=30
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Priority(str):
    """Ticket priority levels."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TicketStatus(str):
    """Ticket lifecycle statuses set at intake."""
    NEW = "new"
    ESCALATED = "escalated"


class MembershipStatus(str):
    """Derived membership states."""
    ACTIVE = "active"
    FROZEN = "frozen"
    EXPIRED = "expired"
    INACTIVE = "inactive"


class ActivityLevel(str):
    """Member activity tiers by total visits."""
    NEW = "new"
    BEGINNER = "beginner"
    REGULAR = "regular"
    FREQUENT = "frequent"
    VIP = "vip"


class SessionStatus(str):
    """Display status of a class session."""
    ACTIVE = "Active"
    CANCELLED = "Cancelled"
    DRAFT = "Draft"


class MomenceAction(str):
    """Actions accepted by the Momence proxy endpoint."""
    SEARCH_MEMBERS = "searchMembers"
    GET_MEMBER_SESSIONS = "getMemberSessions"
    GET_MEMBER_MEMBERSHIPS = "getMemberMemberships"
    GET_SESSIONS = "getSessions"
    GET_SESSION_DETAILS = "getSessionDetails"


# ========== Lists for validation ==========

# Ordered lowest to highest; index comparison decides escalation.
PRIORITY_ORDER = [
    Priority.LOW, Priority.MEDIUM,
    Priority.HIGH, Priority.CRITICAL
]
VALID_PRIORITIES = set(PRIORITY_ORDER)
MOMENCE_ACTIONS = [
    MomenceAction.SEARCH_MEMBERS, MomenceAction.GET_MEMBER_SESSIONS,
    MomenceAction.GET_MEMBER_MEMBERSHIPS, MomenceAction.GET_SESSIONS,
    MomenceAction.GET_SESSION_DETAILS
]
