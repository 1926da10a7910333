"""
Application Service Layer

Bridges entry points and the domain:
- uow: Unit-of-Work pattern for storage sessions and domain event harvesting
- handler: template every command and event handler plugs into
- bus: sequential command/event dispatch loop
- container: dependency injection for handlers and their units of work
- bootstrap: builds a wired MessageBus
"""

from .uow import UnitOfWork, ReadOnlyUnitOfWork
from .handler import Handler
from .bus import MessageBus, HandlerFactory
from .container import DIContainer, ServiceScope
from .bootstrap import FrameworkConfig, bootstrap

__all__ = [
    'UnitOfWork',
    'ReadOnlyUnitOfWork',
    'Handler',
    'MessageBus',
    'HandlerFactory',
    'DIContainer',
    'ServiceScope',
    'FrameworkConfig',
    'bootstrap',
]
