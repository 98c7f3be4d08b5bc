"""Shared API plumbing (middleware, exception handlers)."""
