"""
Sample domain used across the test suite: a job aggregate, its commands and
events, and handlers covering both handler modes.
"""

from typing import Any, Callable, Dict, List, Optional

from drivenmicro import (
    Command,
    Domain,
    Event,
    ExternalRepo,
    Handler,
    Message,
    MicroServiceRequest,
    UnitOfWork,
)
from drivenmicro.persistence.memory import MemoryRepo, MemoryStore, MemoryUnitOfWork


class Job(Domain):
    """Job moving through a processing pipeline."""
    status: str = "pending"

    @classmethod
    def create(cls, external_job_id: str, **data: Any) -> 'Job':
        job = cls(external_job_id=external_job_id, data=data)
        job.add_event(JobCreated(domain=job))
        return job

    def complete(self) -> None:
        self.status = "completed"
        self.add_event(JobCompleted(domain=self))


# Commands
class CreateJob(Command):
    data: Dict[str, Any] = {}


class CompleteJob(Command):
    pass


class CreateJobPair(Command):
    pass


class StartPipeline(Command):
    pass


# Events
class JobCreated(Event):
    pass


class JobCompleted(Event):
    pass


class StepB(Event):
    pass


class StepC(Event):
    pass


class StepBDone(Event):
    pass


class StepCDone(Event):
    pass


class JobRequest(MicroServiceRequest):
    priority: int = 0


def create_job_command(request: JobRequest) -> CreateJob:
    return CreateJob(external_job_id=request.external_job_id, data={"priority": request.priority})


# Handlers
class CreateJobHandler(Handler[CreateJob]):
    def __init__(self, uow: UnitOfWork):
        super().__init__(uow)

    async def _handle(self, message: CreateJob, *args: Any) -> None:
        await self.uow.add(Job.create(message.external_job_id, **message.data))


class CompleteJobHandler(Handler[CompleteJob]):
    def __init__(self, uow: UnitOfWork):
        super().__init__(uow)

    async def _handle(self, message: CompleteJob, *args: Any) -> None:
        job = await self.uow.get(message.external_job_id)
        if job is None:
            raise LookupError(f"Unknown job {message.external_job_id}")
        job.complete()
        await self.uow.update(job)


class CreateJobPairHandler(Handler[CreateJobPair]):
    def __init__(self, uow: UnitOfWork):
        super().__init__(uow)

    async def _handle(self, message: CreateJobPair, *args: Any) -> None:
        await self.uow.add(Job.create(f"{message.external_job_id}-a"))
        await self.uow.add(Job.create(f"{message.external_job_id}-b"))


class ExplodingHandler(Handler[CreateJob]):
    """Fails after building an aggregate but before storing it."""

    def __init__(self, uow: UnitOfWork):
        super().__init__(uow)

    async def _handle(self, message: CreateJob, *args: Any) -> None:
        Job.create(message.external_job_id)
        raise RuntimeError("boom")


class CompleteOnCreateHandler(Handler[JobCreated]):
    """Reacts to a new job by issuing the follow-up command."""

    async def _handle(self, message: JobCreated, *args: Any) -> None:
        self.add_messages([CompleteJob(external_job_id=message.domain.external_job_id)])


class RecordingHandler(Handler):
    """Records every message it sees and emits whatever ``emit`` returns."""

    def __init__(self, log: List[str], emit: Optional[Callable[[Message], List[Message]]] = None):
        super().__init__()
        self.log = log
        self.emit = emit

    async def _handle(self, message: Message, *args: Any) -> None:
        self.log.append(message.name)
        if self.emit is not None:
            self.add_messages(self.emit(message))


class FailingCommitUnitOfWork(MemoryUnitOfWork):
    async def _commit(self) -> None:
        raise RuntimeError("disk full")


class CatalogRepo(ExternalRepo):
    """Read-only lookup table standing in for a third-party system."""

    def __init__(self, records: Dict[str, Any]):
        self.records = records

    async def get(self, id: str, *args: Any) -> Optional[Any]:
        return self.records.get(id)


def memory_uow(store: MemoryStore) -> MemoryUnitOfWork:
    return MemoryUnitOfWork(MemoryRepo(store))
