"""
Message Model

Commands and events are the only things that travel through the message
bus. Both are immutable pydantic models; the concrete class is the routing
key, so every variant is its own subclass.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from .domain import Domain


class Message(BaseModel):
    """Base class for everything flowing through the dispatch loop."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def name(self) -> str:
        """Identity of the concrete variant."""
        return type(self).__name__

    @property
    def context(self) -> str:
        """Human readable description used in logs."""
        return self.name


class Command(Message):
    """
    Intent to change state.

    Exactly one handler per variant; a command without a handler aborts
    the chain.
    """
    external_job_id: str

    @property
    def context(self) -> str:
        return f"{self.name}: {self.external_job_id}"


class Event(Message):
    """
    Fact that already happened to a domain aggregate.

    A non-empty ``error`` marks the failure outcome of a step, not a crash.
    Events without a handler are terminal leaves of the chain.
    """
    domain: Domain
    error: Optional[str] = None

    @property
    def context(self) -> str:
        return f"{self.name}: {self.domain.external_job_id}"

    @property
    def failed(self) -> bool:
        return bool(self.error)
