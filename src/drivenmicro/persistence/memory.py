"""
Persistence Layer - Memory Backend

In-memory aggregate persistence for development and testing. Committed
state lives in a shared ``MemoryStore``; each ``MemoryRepo`` is a session
view that stages writes until the unit of work commits.
"""

import logging
from typing import Dict, List, Optional, Tuple, Type, TYPE_CHECKING

from ..app.uow import UnitOfWork
from ..config import TYPES
from ..core.domain import Domain
from ..core.errors import DomainAlreadyExistsError
from .base import DomainRepo

if TYPE_CHECKING:
    from ..app.container import DIContainer

logger = logging.getLogger(__name__)

Snapshot = Tuple[Type[Domain], dict]


class MemoryStore:
    """Committed aggregate snapshots keyed by external_job_id."""

    def __init__(self):
        self._records: Dict[str, Snapshot] = {}

    def save(self, external_job_id: str, snapshot: Snapshot) -> None:
        self._records[external_job_id] = snapshot

    def load(self, external_job_id: str) -> Optional[Snapshot]:
        return self._records.get(external_job_id)

    def ids(self) -> List[str]:
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, external_job_id: str) -> bool:
        return external_job_id in self._records

    def __len__(self) -> int:
        return len(self._records)


class MemoryRepo(DomainRepo):
    """
    Session view over a ``MemoryStore``.

    Writes are staged and reach the store only on ``commit``; closing the
    outermost session drops anything left uncommitted.
    """

    def __init__(self, store: MemoryStore):
        super().__init__()
        self.store = store
        self._staged: Dict[str, Snapshot] = {}
        self.commits = 0
        self.rollbacks = 0

    def _open_session(self) -> None:
        self._staged = {}

    def _close_session(self) -> None:
        if self._staged:
            logger.debug(f"MemoryRepo: discarding {len(self._staged)} uncommitted write(s)")
        self._staged = {}

    def _stage(self, domain: Domain) -> None:
        self._staged[domain.external_job_id] = (type(domain), domain.serialize())
        self._track(domain)

    async def add(self, domain: Domain) -> None:
        self._require_session()
        if domain.external_job_id in self._staged or domain.external_job_id in self.store:
            raise DomainAlreadyExistsError(domain.external_job_id)
        self._stage(domain)

    async def get(self, id: str, batch_identifier: Optional[str] = None) -> Optional[Domain]:
        """
        Load an aggregate, preferring the instance already seen in this repo.

        Args:
            id: External job identifier
            batch_identifier: Optional selector matched against data["batch_identifier"]
        """
        self._require_session()

        domain = next((d for d in self.seen if d.external_job_id == id), None)
        if domain is None:
            snapshot = self._staged.get(id) or self.store.load(id)
            if snapshot is None:
                return None
            domain_class, payload = snapshot
            domain = domain_class.deserialize(payload)

        if batch_identifier is not None and domain.data.get("batch_identifier") != batch_identifier:
            return None

        self._track(domain)
        return domain

    async def update(self, domain: Domain) -> None:
        self._require_session()
        self._stage(domain)

    def commit(self) -> None:
        for external_job_id, snapshot in self._staged.items():
            self.store.save(external_job_id, snapshot)
        self._staged = {}
        self.commits += 1

    def rollback(self) -> None:
        self._staged = {}
        self.rollbacks += 1


class MemoryUnitOfWork(UnitOfWork):
    """Unit of work backed by a ``MemoryRepo``."""

    def __init__(self, repo: MemoryRepo):
        super().__init__(repo)

    async def _commit(self) -> None:
        self.repo.commit()

    async def _rollback(self) -> None:
        self.repo.rollback()


def bind_memory_persistence(container: 'DIContainer', store: Optional[MemoryStore] = None) -> MemoryStore:
    """
    Register in-memory persistence in a DI container.

    The store is shared; repositories and units of work are built fresh for
    every handler.
    """
    store = store if store is not None else MemoryStore()
    container.register_instance(MemoryStore, store, alias=TYPES.MemoryStore)
    container.register_transient(MemoryRepo)
    container.register_transient(DomainRepo, MemoryRepo, alias=TYPES.DomainRepo)
    container.register_transient(UnitOfWork, MemoryUnitOfWork, alias=TYPES.UnitOfWork)
    return store
