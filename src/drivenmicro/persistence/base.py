"""
Persistence Layer - Repository Interfaces

Abstract repositories used by the Unit of Work. A domain repository tracks
every aggregate it has loaded or stored during a session (``seen``) so the
Unit of Work can harvest their events; an external repository is read-only
and never produces events.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..core.domain import Domain
from ..core.errors import SessionNotOpenError

logger = logging.getLogger(__name__)


class DomainRepo(ABC):
    """
    Abstract base class for aggregate repositories.

    Session lifecycle is reentrant: nested ``set_db_session`` calls share the
    session opened by the outermost call, which is released when the
    outermost bracket closes. ``sessions_opened`` and ``sessions_closed``
    count the calls so callers can verify symmetric release.
    """

    def __init__(self):
        """Initialize repository session state."""
        self._seen: Dict[int, Domain] = {}
        self._session_depth: int = 0
        self.sessions_opened: int = 0
        self.sessions_closed: int = 0

    @property
    def seen(self) -> List[Domain]:
        """Aggregates touched during this repository's lifetime, in first-seen order."""
        return list(self._seen.values())

    @property
    def in_session(self) -> bool:
        return self._session_depth > 0

    def _track(self, domain: Domain) -> None:
        self._seen.setdefault(id(domain), domain)

    def _require_session(self) -> None:
        if not self.in_session:
            raise SessionNotOpenError(
                f"{self.__class__.__name__} operation requires an open session"
            )

    def set_db_session(self) -> None:
        """Acquire the storage session (or join the one already open)."""
        self.sessions_opened += 1
        if self._session_depth == 0:
            self._open_session()
        self._session_depth += 1

    def close_db_session(self) -> None:
        """Release one level of the storage session."""
        if self._session_depth == 0:
            logger.warning(f"{self.__class__.__name__}: close_db_session called without an open session")
            return
        self.sessions_closed += 1
        self._session_depth -= 1
        if self._session_depth == 0:
            self._close_session()

    @abstractmethod
    def _open_session(self) -> None:
        """Open the underlying storage session."""
        pass

    @abstractmethod
    def _close_session(self) -> None:
        """Close the underlying storage session, discarding uncommitted work."""
        pass

    @abstractmethod
    async def add(self, domain: Domain) -> None:
        """
        Stage a new aggregate for persistence.

        Args:
            domain: Aggregate to store
        """
        pass

    @abstractmethod
    async def get(self, id: str, *args: Any) -> Optional[Domain]:
        """
        Load an aggregate by its external_job_id.

        Args:
            id: External job identifier
            *args: Backend specific selectors (e.g. a batch identifier)

        Returns:
            The aggregate if found, None otherwise
        """
        pass

    @abstractmethod
    async def update(self, domain: Domain) -> None:
        """Stage the current state of an aggregate."""
        pass


class ExternalRepo(ABC):
    """
    Read-only repository over a system this service does not own.

    Exposes only ``get``; has no ``seen`` set, so a Unit of Work bound to it
    never harvests events.
    """

    def set_db_session(self) -> None:
        pass

    def close_db_session(self) -> None:
        pass

    @abstractmethod
    async def get(self, id: str, *args: Any) -> Optional[Any]:
        """Fetch a record from the external system."""
        pass
