"""Exception hierarchy for the dispatch core."""


class DrivenMicroError(Exception):
    """Base exception for all dispatch core errors."""


# --- Routing ---
class RoutingError(DrivenMicroError):
    """A message could not be routed to a handler."""


class UnhandledCommandError(RoutingError):
    """No handler is registered for a command variant."""

    def __init__(self, command_name: str):
        self.command_name = command_name
        super().__init__(f"No handler found for command: {command_name}")


class UnroutableMessageError(RoutingError):
    """The queued object is neither a Command nor an Event."""

    def __init__(self, message: object):
        self.message = message
        super().__init__(f"{message!r} was not a Command or Event")


class HandlerRegistrationError(DrivenMicroError):
    """Invalid handler mapping supplied to the bus."""


# --- Unit of Work ---
class UnitOfWorkError(DrivenMicroError):
    """Unit of Work lifecycle error."""


class RepositoryNotInitializedError(UnitOfWorkError):
    """The unit of work has no repository attached."""

    def __init__(self):
        super().__init__("Repository not initialized")


# --- Persistence ---
class RepositoryError(DrivenMicroError):
    """Repository operation failed."""


class SessionNotOpenError(RepositoryError):
    """A repository operation ran outside of a storage session."""


class DomainAlreadyExistsError(RepositoryError):
    """An aggregate with the same external_job_id is already stored."""

    def __init__(self, external_job_id: str):
        self.external_job_id = external_job_id
        super().__init__(f"Domain already exists: {external_job_id}")
