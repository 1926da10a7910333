"""
Unit of Work Pattern

Bounds storage-touching operations with a symmetric open/close of the
repository session and turns aggregate-local event buffers into messages the
bus can route.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Union

from ..core.domain import Domain
from ..core.errors import RepositoryNotInitializedError, UnitOfWorkError
from ..core.messages import Message
from ..persistence.base import DomainRepo, ExternalRepo

logger = logging.getLogger(__name__)


class UnitOfWork(ABC):
    """
    Transaction scope around one handler's persistence operations.

    Usage:
        async with uow:
            await do_something(uow.repo)
            await uow.commit()

    ``add``, ``get`` and ``update`` each run their own enter/commit/exit
    bracket, so calling several of them inside one handler produces several
    short sessions nested in the handler's own bracket.

    Subclasses provide the ``_commit`` and ``_rollback`` hooks.
    """

    def __init__(self, repo: Optional[Union[DomainRepo, ExternalRepo]] = None):
        """
        Initialize Unit of Work.

        Args:
            repo: Repository whose session this unit of work controls
        """
        self._repo = repo
        self._events: List[Message] = []

    @property
    def repo(self) -> Union[DomainRepo, ExternalRepo]:
        if self._repo is None:
            raise RepositoryNotInitializedError()
        return self._repo

    @repo.setter
    def repo(self, repo: Union[DomainRepo, ExternalRepo]) -> None:
        self._repo = repo

    async def enter(self) -> 'UnitOfWork':
        """Acquire the repository's storage session."""
        self.repo.set_db_session()
        return self

    async def exit(self, error: Optional[BaseException] = None) -> None:
        """
        Release the storage session, rolling back first if an error is given.

        The session is closed even when the rollback hook itself fails.
        """
        repo = self.repo
        try:
            if error is not None:
                self._log_exception(error)
                await self._rollback()
        finally:
            repo.close_db_session()

    async def __aenter__(self) -> 'UnitOfWork':
        return await self.enter()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.exit(exc_val)

    def _log_exception(self, error: BaseException) -> None:
        logger.error(f"Exception in UnitOfWork: {type(error).__name__} - {error}")

    async def commit(self) -> None:
        await self._commit()

    def collect_new_events(self) -> List[Message]:
        """
        Drain the pending events of every aggregate the repository has seen.

        Aggregates are drained in first-seen order, each in its own event
        order. Returns everything harvested by this unit of work so far, not
        only the newly drained part.
        """
        if self._repo is None:
            raise RepositoryNotInitializedError()

        # External repositories have no seen set and never produce events
        seen = getattr(self._repo, "seen", None)
        if seen is not None:
            for domain in seen:
                self._events.extend(domain.pull_events())
        return list(self._events)

    def clear_events(self) -> None:
        """Forget the events harvested so far."""
        self._events = []

    def _domain_repo(self) -> DomainRepo:
        repo = self.repo
        if not isinstance(repo, DomainRepo):
            raise UnitOfWorkError(f"{type(repo).__name__} is read-only")
        return repo

    async def add(self, domain: Domain) -> None:
        """Store a new aggregate in its own session and harvest its events."""
        async with self:
            await self._domain_repo().add(domain)
            await self.commit()
            self.collect_new_events()

    async def get(self, id: str, *args: Any) -> Optional[Any]:
        """Load an aggregate (or external record) in its own session."""
        async with self:
            domain = await self.repo.get(id, *args)
            await self.commit()
            return domain

    async def update(self, domain: Domain) -> None:
        """Store the aggregate's current state in its own session and harvest its events."""
        async with self:
            await self._domain_repo().update(domain)
            await self.commit()
            self.collect_new_events()

    @abstractmethod
    async def _commit(self) -> None:
        """Flush staged changes to storage."""
        pass

    @abstractmethod
    async def _rollback(self) -> None:
        """Discard staged changes."""
        pass


class ReadOnlyUnitOfWork(UnitOfWork):
    """Unit of work over an external repository; nothing to commit or roll back."""

    def __init__(self, repo: ExternalRepo):
        super().__init__(repo)

    async def _commit(self) -> None:
        pass

    async def _rollback(self) -> None:
        pass
