"""
Domain layer - messages, aggregates and the error taxonomy.

Framework-agnostic; nothing here knows about storage or transports.
"""

from .domain import Domain
from .messages import Message, Command, Event
from .request import MicroServiceRequest
from .errors import (
    DrivenMicroError,
    RoutingError,
    UnhandledCommandError,
    UnroutableMessageError,
    HandlerRegistrationError,
    UnitOfWorkError,
    RepositoryNotInitializedError,
    RepositoryError,
    SessionNotOpenError,
    DomainAlreadyExistsError,
)

__all__ = [
    "Domain",
    "Message",
    "Command",
    "Event",
    "MicroServiceRequest",
    "DrivenMicroError",
    "RoutingError",
    "UnhandledCommandError",
    "UnroutableMessageError",
    "HandlerRegistrationError",
    "UnitOfWorkError",
    "RepositoryNotInitializedError",
    "RepositoryError",
    "SessionNotOpenError",
    "DomainAlreadyExistsError",
]
