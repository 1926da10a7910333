"""
Dependency Injection Container

Wires repositories, units of work and handlers together. Handlers are
registered transient so every routed message gets a fresh handler, unit of
work and repository view; shared resources (stores, engines) are singletons.
"""

import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union, get_type_hints

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ServiceScope(Enum):
    """Service lifetime scopes"""
    SINGLETON = "singleton"      # One instance for the container
    TRANSIENT = "transient"      # New instance every time
    SCOPED = "scoped"            # One instance per scope id (e.g. per request)


class DIError(Exception):
    """Base exception for dependency injection errors"""
    pass


class ServiceNotFoundError(DIError):
    """Raised when a service is not registered"""
    pass


class CircularDependencyError(DIError):
    """Raised when circular dependencies are detected"""
    pass


class ServiceConfigurationError(DIError):
    """Raised when service configuration is invalid"""
    pass


@dataclass
class ServiceRegistration:
    """Service registration information"""
    implementation: Any
    scope: ServiceScope = ServiceScope.SINGLETON
    factory: Optional[Callable] = None
    config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.factory is not None and not callable(self.factory):
            raise ServiceConfigurationError("Factory must be callable")


class DIContainer:
    """
    Dependency Injection Container.

    Features:
    - Singleton, transient and scoped lifetimes
    - Constructor and factory injection driven by type hints
    - String aliases (see ``config.TYPES``)
    - Per-registration keyword config
    - Circular dependency detection
    """

    def __init__(self):
        self._registrations: Dict[str, ServiceRegistration] = {}
        self._singletons: Dict[str, Any] = {}
        self._scoped_instances: Dict[str, Dict[str, Any]] = {}
        self._aliases: Dict[str, str] = {}
        self._resolution_stack: List[str] = []
        self._shutdown_hooks: List[Callable] = []

    def register(
        self,
        service_type: Union[Type[T], str],
        implementation: Any = None,
        scope: ServiceScope = ServiceScope.SINGLETON,
        factory: Optional[Callable] = None,
        config: Optional[Dict[str, Any]] = None,
        alias: Optional[str] = None,
    ) -> 'DIContainer':
        """
        Register a service with the container.

        Args:
            service_type: The service type or string key
            implementation: Implementation class, instance or factory function
            scope: Service lifetime scope
            factory: Optional factory function (parameters are injected)
            config: Keyword arguments passed to the constructor or factory
            alias: Optional alias for the service

        Returns:
            Self for method chaining
        """
        service_key = self._get_service_key(service_type)

        if implementation is None and factory is None:
            if isinstance(service_type, type):
                implementation = service_type
            else:
                raise ServiceConfigurationError(f"Implementation required for string key: {service_key}")

        self._registrations[service_key] = ServiceRegistration(
            implementation=implementation,
            scope=scope,
            factory=factory,
            config=config or {},
        )
        # Re-registration replaces any cached instance
        self._singletons.pop(service_key, None)

        if alias:
            self._aliases[alias] = service_key
        return self

    def register_singleton(self, service_type: Union[Type[T], str], implementation: Any = None, **kwargs) -> 'DIContainer':
        return self.register(service_type, implementation, ServiceScope.SINGLETON, **kwargs)

    def register_transient(self, service_type: Union[Type[T], str], implementation: Any = None, **kwargs) -> 'DIContainer':
        return self.register(service_type, implementation, ServiceScope.TRANSIENT, **kwargs)

    def register_factory(self, service_type: Union[Type[T], str], factory: Callable[..., T], **kwargs) -> 'DIContainer':
        return self.register(service_type, None, factory=factory, **kwargs)

    def register_instance(self, service_type: Union[Type[T], str], instance: T, alias: Optional[str] = None) -> 'DIContainer':
        """Register an already built object as a singleton."""
        service_key = self._get_service_key(service_type)
        self._registrations[service_key] = ServiceRegistration(implementation=instance)
        self._singletons[service_key] = instance
        if alias:
            self._aliases[alias] = service_key
        return self

    def get(self, service_type: Union[Type[T], str], scope_id: Optional[str] = None) -> T:
        """
        Get a service instance.

        Args:
            service_type: The service type, string key or alias
            scope_id: Scope identifier for scoped services

        Returns:
            The service instance
        """
        service_key = self._resolve_service_key(service_type)

        if service_key not in self._registrations:
            raise ServiceNotFoundError(f"Service not registered: {service_key}")

        registration = self._registrations[service_key]

        if service_key in self._resolution_stack:
            cycle = " -> ".join(self._resolution_stack + [service_key])
            raise CircularDependencyError(f"Circular dependency detected: {cycle}")

        try:
            self._resolution_stack.append(service_key)

            if registration.scope == ServiceScope.SINGLETON:
                if service_key not in self._singletons:
                    self._singletons[service_key] = self._create_instance(registration)
                return self._singletons[service_key]
            elif registration.scope == ServiceScope.TRANSIENT:
                return self._create_instance(registration)
            elif registration.scope == ServiceScope.SCOPED:
                scope_instances = self._scoped_instances.setdefault(scope_id or "default", {})
                if service_key not in scope_instances:
                    scope_instances[service_key] = self._create_instance(registration)
                return scope_instances[service_key]
            else:
                raise ServiceConfigurationError(f"Unknown scope: {registration.scope}")
        finally:
            self._resolution_stack.pop()

    def try_get(self, service_type: Union[Type[T], str]) -> Optional[T]:
        """Try to get a service, returning None if not found"""
        try:
            return self.get(service_type)
        except ServiceNotFoundError:
            return None

    def is_registered(self, service_type: Union[Type[T], str]) -> bool:
        return self._resolve_service_key(service_type) in self._registrations

    def end_scope(self, scope_id: str) -> None:
        """Drop all instances created for a scope."""
        self._scoped_instances.pop(scope_id, None)

    def add_shutdown_hook(self, hook: Callable) -> None:
        self._shutdown_hooks.append(hook)

    def shutdown(self) -> None:
        """Run shutdown hooks in reverse order and forget all instances."""
        for hook in reversed(self._shutdown_hooks):
            try:
                hook()
            except Exception as e:
                logger.error(f"Error running shutdown hook {hook!r}: {e}")
        self._shutdown_hooks.clear()
        self._singletons.clear()
        self._scoped_instances.clear()

    def _get_service_key(self, service_type: Union[Type, str]) -> str:
        """Get normalized service key"""
        if isinstance(service_type, str):
            return service_type
        elif isinstance(service_type, type):
            return f"{service_type.__module__}.{service_type.__qualname__}"
        else:
            return str(service_type)

    def _resolve_service_key(self, service_type: Union[Type, str]) -> str:
        service_key = self._get_service_key(service_type)
        return self._aliases.get(service_key, service_key)

    def _create_instance(self, registration: ServiceRegistration) -> Any:
        if registration.factory:
            return self._invoke(registration.factory, registration.config)
        elif inspect.isclass(registration.implementation):
            return self._invoke(registration.implementation, registration.config)
        elif callable(registration.implementation):
            return self._invoke(registration.implementation, registration.config)
        else:
            # Plain instance
            return registration.implementation

    def _invoke(self, target: Callable, config: Dict[str, Any]) -> Any:
        """Call a class or factory, injecting registered dependencies by type hint."""
        signature_target = target.__init__ if inspect.isclass(target) else target
        signature = inspect.signature(signature_target)
        try:
            hints = get_type_hints(signature_target)
        except Exception:
            hints = {}

        kwargs = dict(config)
        for param_name, param in signature.parameters.items():
            if param_name == 'self' or param_name in kwargs:
                continue
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            param_type = hints.get(param_name, param.annotation)
            if param_type is inspect.Parameter.empty:
                continue
            try:
                kwargs[param_name] = self.get(param_type)
            except ServiceNotFoundError:
                # Unresolvable parameters fall back to their defaults
                if param.default is inspect.Parameter.empty:
                    raise

        return target(**kwargs)
