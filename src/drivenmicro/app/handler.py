"""
Handler Template

Every business-logic unit plugs into ``Handler``: subclasses implement
``_handle`` and the template owns the Unit of Work lifecycle, error logging
and the list of messages one invocation produces.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Optional, TypeVar

from ..core.messages import Message
from .uow import UnitOfWork

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=Message)


class Handler(ABC, Generic[M]):
    """
    Base class for command and event handlers.

    With a Unit of Work attached the invocation runs inside it: enter, run
    ``_handle``, harvest new events, commit, exit. Without one, ``_handle``
    runs bare. In both modes an error is logged here and re-raised, which
    aborts the whole chain.

    Subclasses that persist state request a unit of work in their
    constructor so the container can inject it:

        class CreateJobHandler(Handler[CreateJob]):
            def __init__(self, uow: UnitOfWork):
                super().__init__(uow)
    """

    def __init__(self, uow: Optional[UnitOfWork] = None):
        self.uow = uow
        self._return_messages: List[Message] = []

    async def handle(self, message: M, *args: Any) -> List[Message]:
        """
        Run the handler for one message.

        Args:
            message: Command or event routed to this handler

        Returns:
            Messages produced by this invocation, in emission order
        """
        self._return_messages = []

        if self.uow is None:
            try:
                await self._handle(message, *args)
                return self.finish()
            except Exception as e:
                self.log_error(str(e), message.context)
                raise

        # Each invocation reports only its own events
        self.uow.clear_events()
        await self.uow.enter()
        error: Optional[BaseException] = None
        try:
            await self._handle(message, *args)
            self.add_messages(self.uow.collect_new_events())
            await self.uow.commit()
            return self.finish()
        except Exception as e:
            error = e
            self.log_error(str(e), message.context)
            raise
        finally:
            await self.uow.exit(error)

    @abstractmethod
    async def _handle(self, message: M, *args: Any) -> None:
        """Business logic; mutate state through the unit of work."""
        pass

    def log_error(self, error: str, context: Optional[str] = None) -> None:
        logger.error(f"{self.__class__.__name__} | Error: {error} | Context: {context}")

    def add_messages(self, messages: Iterable[Message]) -> None:
        """Queue messages to return to the bus after this invocation."""
        self._return_messages.extend(messages)

    def finish(self) -> List[Message]:
        return list(self._return_messages)
