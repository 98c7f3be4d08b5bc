"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from studiodesk.core.exceptions import (
    ApplicationException,
    RepositoryException,
    DuplicateKeyException,
    ValidationException,
    ConfigurationException,
    ExternalServiceException,
    LLMException,
)
from studiodesk.core.results import FetchOutcome, FetchResult

__all__ = [
    "ApplicationException",
    "RepositoryException",
    "DuplicateKeyException",
    "ValidationException",
    "ConfigurationException",
    "ExternalServiceException",
    "LLMException",
    "FetchOutcome",
    "FetchResult",
]
