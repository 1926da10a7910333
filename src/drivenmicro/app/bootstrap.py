"""
Framework Bootstrap

Builds a ready-to-use ``MessageBus`` from handler mappings and dependency
bindings. Handler classes are resolved through the DI container, so each
routed message gets a fresh handler with freshly injected dependencies.
"""

import inspect
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, Dict, Mapping, Optional, Type

from ..config import TYPES, ApplicationConfig, configure_logging, get_config
from ..core.domain import Domain
from ..core.errors import HandlerRegistrationError
from ..core.messages import Command, Event
from ..persistence.memory import bind_memory_persistence
from ..persistence.sql import bind_sql_persistence, create_sql_engine
from .bus import HandlerFactory, MessageBus
from .container import DIContainer, DIError
from .handler import Handler

logger = logging.getLogger(__name__)


@dataclass
class FrameworkConfig:
    """
    Configuration for ``bootstrap``.

    Attributes:
        command_handlers: Command class -> handler class
        event_handlers: Event class -> handler class
        dependencies: Callback binding repositories, units of work and
            clients; when omitted the configured default persistence
            backend is bound
        app_config: Application configuration (defaults to the global one)
        container: Container to populate; one is created when omitted and
            left here for the caller
        domain_class: Aggregate class used by the default SQL backend
    """
    command_handlers: Mapping[Type[Command], Type[Handler]] = field(default_factory=dict)
    event_handlers: Mapping[Type[Event], Type[Handler]] = field(default_factory=dict)
    dependencies: Optional[Callable[[DIContainer], None]] = None
    app_config: Optional[ApplicationConfig] = None
    container: Optional[DIContainer] = None
    domain_class: Type[Domain] = Domain


def bootstrap(config: FrameworkConfig) -> MessageBus:
    """
    Initialize the framework and return the message bus.

    Example:
        bus = bootstrap(FrameworkConfig(
            command_handlers={CreateJob: CreateJobHandler},
            event_handlers={JobCreated: NotifyHandler},
            dependencies=lambda c: bind_memory_persistence(c),
        ))
        await bus.handle(CreateJob(external_job_id="job-1"))
    """
    app_config = config.app_config or get_config()
    configure_logging(app_config.logging)

    if config.container is None:
        config.container = DIContainer()
    container = config.container
    container.register_instance(ApplicationConfig, app_config)

    if config.dependencies is not None:
        config.dependencies(container)
    else:
        _bind_default_persistence(container, app_config, config.domain_class)

    command_factories = _register_handlers(container, config.command_handlers)
    event_factories = _register_handlers(container, config.event_handlers)

    bus = MessageBus(command_factories, event_factories)
    container.register_instance(MessageBus, bus, alias=TYPES.MessageBus)

    logger.info(
        f"Message bus ready: {len(command_factories)} command handler(s), "
        f"{len(event_factories)} event handler(s)"
    )
    return bus


def _bind_default_persistence(container: DIContainer, app_config: ApplicationConfig, domain_class: Type[Domain]) -> None:
    backend = app_config.persistence.default_backend
    if backend == "memory":
        bind_memory_persistence(container)
    elif backend == "sql":
        engine = create_sql_engine(app_config.persistence.database_url, echo=app_config.persistence.echo)
        bind_sql_persistence(container, engine=engine, domain_class=domain_class)
    else:
        raise ValueError(f"Unknown storage backend: {backend}")


def _register_handlers(container: DIContainer, handlers: Mapping[type, Type[Handler]]) -> Dict[type, HandlerFactory]:
    factories = {}
    for message_type, handler_class in handlers.items():
        if not inspect.isclass(handler_class) or not issubclass(handler_class, Handler):
            raise HandlerRegistrationError(f"{handler_class!r} is not a Handler subclass")

        container.register_transient(handler_class)

        # Build once now so missing dependencies surface at startup
        try:
            container.get(handler_class)
        except DIError as e:
            raise HandlerRegistrationError(
                f"Cannot build {handler_class.__name__} for {message_type.__name__}: {e}"
            ) from e

        factories[message_type] = partial(container.get, handler_class)
    return factories
