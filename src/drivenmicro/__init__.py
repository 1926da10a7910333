"""
driven-micro - In-process command/event dispatch for CQRS-style services

An external request becomes a Command; handling it mutates domain aggregates
inside a Unit of Work and emits Events; events may trigger further Commands.
The MessageBus runs the whole chain to completion within one request.
"""

# The application layer loads first: the persistence backends build on its Unit of Work
from .app import (
    UnitOfWork,
    ReadOnlyUnitOfWork,
    Handler,
    MessageBus,
    HandlerFactory,
    DIContainer,
    ServiceScope,
    FrameworkConfig,
    bootstrap,
)
from .core import (
    Domain,
    Message,
    Command,
    Event,
    MicroServiceRequest,
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
from .persistence import DomainRepo, ExternalRepo
from .persistence.memory import MemoryStore, MemoryRepo, MemoryUnitOfWork, bind_memory_persistence
from .persistence.sql import SQLRepo, SQLUnitOfWork, create_sql_engine, bind_sql_persistence
from .config import TYPES, ApplicationConfig, Environment, configure_logging, get_config, set_config

__version__ = "0.1.0"

__all__ = [
    # Messages and aggregates
    'Domain',
    'Message',
    'Command',
    'Event',
    'MicroServiceRequest',

    # Application service layer
    'UnitOfWork',
    'ReadOnlyUnitOfWork',
    'Handler',
    'MessageBus',
    'HandlerFactory',
    'DIContainer',
    'ServiceScope',
    'FrameworkConfig',
    'bootstrap',

    # Persistence
    'DomainRepo',
    'ExternalRepo',
    'MemoryStore',
    'MemoryRepo',
    'MemoryUnitOfWork',
    'bind_memory_persistence',
    'SQLRepo',
    'SQLUnitOfWork',
    'create_sql_engine',
    'bind_sql_persistence',

    # Configuration
    'TYPES',
    'ApplicationConfig',
    'Environment',
    'configure_logging',
    'get_config',
    'set_config',

    # Errors
    'DrivenMicroError',
    'RoutingError',
    'UnhandledCommandError',
    'UnroutableMessageError',
    'HandlerRegistrationError',
    'UnitOfWorkError',
    'RepositoryNotInitializedError',
    'RepositoryError',
    'SessionNotOpenError',
    'DomainAlreadyExistsError',
]
