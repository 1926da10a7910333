"""
Persistence Module

Repository interfaces implemented by the storage backends:

- memory: staged in-memory store for development and tests
- sql: SQLModel-backed store

The backends depend on the application layer's Unit of Work, so they are
imported from their own modules rather than re-exported here.
"""

from .base import DomainRepo, ExternalRepo

__all__ = [
    "DomainRepo",
    "ExternalRepo",
]
