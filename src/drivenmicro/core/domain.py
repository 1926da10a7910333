"""
Domain Aggregate

The unit of business state. An aggregate records the events it causes in a
private buffer; the Unit of Work later drains that buffer and hands the
events to the message bus.
"""

from typing import Any, Dict, List, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

if TYPE_CHECKING:
    from .messages import Event


class Domain(BaseModel):
    """
    Base class for all domain aggregates.

    Attributes:
        external_job_id: Stable correlation key shared by the whole chain
        data: Opaque mapping of business fields
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    external_job_id: str
    data: Dict[str, Any] = Field(default_factory=dict)

    _events: List[Any] = PrivateAttr(default_factory=list)

    @property
    def events(self) -> List['Event']:
        """Snapshot of the events caused but not yet harvested."""
        return list(self._events)

    def add_event(self, event: 'Event') -> None:
        """Append an event to the pending buffer."""
        self._events.append(event)

    def clear_events(self) -> None:
        """Discard all pending events."""
        self._events.clear()

    def pull_events(self) -> List['Event']:
        """
        Take all pending events, then clear the buffer.

        Not safe to call while another coroutine is still adding events
        to the same aggregate.
        """
        pending, self._events = self._events, []
        return pending

    def serialize(self) -> Dict[str, Any]:
        """Storage representation of the aggregate."""
        return self.model_dump(mode="json")

    @classmethod
    def deserialize(cls, payload: Dict[str, Any]) -> 'Domain':
        """Rebuild an aggregate from its storage representation."""
        return cls.model_validate(payload)
