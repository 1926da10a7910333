"""
Persistence Layer - SQL Backend

SQLModel repository storing aggregates as JSON payload rows. One SQLModel
session spans the outermost session bracket; nested brackets (the unit of
work's per-operation envelopes inside a handler) join it.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type, TYPE_CHECKING

from sqlalchemy import JSON, Column
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine

from ..app.uow import UnitOfWork
from ..config import TYPES, get_config
from ..core.domain import Domain
from ..core.errors import DomainAlreadyExistsError
from .base import DomainRepo

if TYPE_CHECKING:
    from ..app.container import DIContainer

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DomainRecord(SQLModel, table=True):
    """Row holding the serialized state of one aggregate."""
    __tablename__ = "domain_records"

    external_job_id: str = Field(primary_key=True)
    kind: str
    batch_identifier: Optional[str] = Field(default=None, index=True)
    payload: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=utc_now)


def create_sql_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine and make sure the aggregate table exists.

    In-memory SQLite databases use a static pool so every session sees the
    same database.
    """
    kwargs: Dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)
    SQLModel.metadata.create_all(engine, tables=[DomainRecord.__table__])
    logger.info(f"SQL persistence ready: {engine.url}")
    return engine


class SQLRepo(DomainRepo):
    """Aggregate repository over a SQLModel session."""

    def __init__(self, engine: Engine, domain_class: Type[Domain] = Domain):
        """
        Args:
            engine: SQLAlchemy engine (see ``create_sql_engine``)
            domain_class: Aggregate class rebuilt from stored payloads
        """
        super().__init__()
        self.engine = engine
        self.domain_class = domain_class
        self.session: Optional[Session] = None

    def _open_session(self) -> None:
        self.session = Session(self.engine)

    def _close_session(self) -> None:
        # Closing rolls back anything not yet committed
        self.session.close()
        self.session = None

    def _to_record(self, domain: Domain) -> DomainRecord:
        return DomainRecord(
            external_job_id=domain.external_job_id,
            kind=type(domain).__name__,
            batch_identifier=domain.data.get("batch_identifier"),
            payload=domain.serialize(),
            updated_at=utc_now(),
        )

    async def add(self, domain: Domain) -> None:
        self._require_session()
        if self.session.get(DomainRecord, domain.external_job_id) is not None:
            raise DomainAlreadyExistsError(domain.external_job_id)
        self.session.add(self._to_record(domain))
        self._track(domain)

    async def get(self, id: str, batch_identifier: Optional[str] = None) -> Optional[Domain]:
        self._require_session()

        domain = next((d for d in self.seen if d.external_job_id == id), None)
        if domain is None:
            record = self.session.get(DomainRecord, id)
            if record is None:
                return None
            domain = self.domain_class.deserialize(record.payload)

        if batch_identifier is not None and domain.data.get("batch_identifier") != batch_identifier:
            return None

        self._track(domain)
        return domain

    async def update(self, domain: Domain) -> None:
        self._require_session()
        self.session.merge(self._to_record(domain))
        self._track(domain)


class SQLUnitOfWork(UnitOfWork):
    """Unit of work committing and rolling back the repository's SQLModel session."""

    def __init__(self, repo: SQLRepo):
        super().__init__(repo)

    async def _commit(self) -> None:
        self.repo.session.commit()

    async def _rollback(self) -> None:
        self.repo.session.rollback()


def bind_sql_persistence(
    container: 'DIContainer',
    engine: Optional[Engine] = None,
    domain_class: Type[Domain] = Domain,
    database_url: Optional[str] = None,
) -> Engine:
    """
    Register SQL persistence in a DI container.

    Args:
        container: Container to populate
        engine: Existing engine; created from the configuration when omitted
        domain_class: Aggregate class the repository rebuilds
        database_url: Overrides the configured database URL
    """
    if engine is None:
        persistence = get_config().persistence
        engine = create_sql_engine(database_url or persistence.database_url, echo=persistence.echo)

    container.register_instance(Engine, engine, alias=TYPES.SQLEngine)
    container.register_transient(SQLRepo, config={"domain_class": domain_class})
    container.register_transient(DomainRepo, SQLRepo, config={"domain_class": domain_class}, alias=TYPES.DomainRepo)
    container.register_transient(UnitOfWork, SQLUnitOfWork, alias=TYPES.UnitOfWork)
    container.add_shutdown_hook(engine.dispose)
    return engine
