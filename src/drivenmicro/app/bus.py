"""
Message Bus

Sequential dispatch loop for commands and events. One call to ``handle``
drains a FIFO queue that starts with the inbound message and grows with
whatever each handler returns, until the chain is complete.
"""

import logging
from collections import deque
from typing import Callable, Deque, Dict, List, Mapping, Optional, Type

from ..core.errors import HandlerRegistrationError, UnhandledCommandError, UnroutableMessageError
from ..core.messages import Command, Event, Message
from .handler import Handler

logger = logging.getLogger(__name__)

HandlerFactory = Callable[[], Handler]


class MessageBus:
    """
    Routes each message to the handler registered for its concrete class.

    The queue lives inside ``handle``, so the bus itself holds no per-chain
    state and independent chains may run concurrently on one instance.
    There is no timeout: a handler that never completes blocks its chain.
    """

    def __init__(
        self,
        command_handlers: Optional[Mapping[Type[Command], HandlerFactory]] = None,
        event_handlers: Optional[Mapping[Type[Event], HandlerFactory]] = None,
    ):
        """
        Initialize the bus.

        Args:
            command_handlers: Command class -> factory building its handler
            event_handlers: Event class -> factory building its handler
        """
        self._command_handlers = self._validate(command_handlers or {}, Command)
        self._event_handlers = self._validate(event_handlers or {}, Event)

    @staticmethod
    def _validate(handlers: Mapping[type, HandlerFactory], base: type) -> Dict[type, HandlerFactory]:
        validated = {}
        for message_type, factory in handlers.items():
            if not isinstance(message_type, type) or not issubclass(message_type, base):
                raise HandlerRegistrationError(
                    f"{message_type!r} is not a {base.__name__} subclass"
                )
            if message_type is base:
                raise HandlerRegistrationError(
                    f"Register handlers for concrete {base.__name__} variants, not {base.__name__} itself"
                )
            if not callable(factory):
                raise HandlerRegistrationError(
                    f"Handler factory for {message_type.__name__} is not callable"
                )
            validated[message_type] = factory
        return validated

    @property
    def command_types(self) -> List[Type[Command]]:
        return list(self._command_handlers)

    @property
    def event_types(self) -> List[Type[Event]]:
        return list(self._event_handlers)

    def has_handler(self, message_type: type) -> bool:
        return message_type in self._command_handlers or message_type in self._event_handlers

    async def handle(self, message: Message) -> None:
        """
        Run the chain started by ``message`` to completion.

        Raises whatever a handler raises; the remaining queue is abandoned.
        """
        queue: Deque[Message] = deque([message])

        while queue:
            current = queue.popleft()

            if isinstance(current, Command):
                new_messages = await self._handle_command(current)
            elif isinstance(current, Event):
                new_messages = await self._handle_event(current)
            else:
                raise UnroutableMessageError(current)

            queue.extend(new_messages)

    async def _handle_command(self, command: Command) -> List[Message]:
        factory = self._command_handlers.get(type(command))
        if factory is None:
            raise UnhandledCommandError(command.name)

        logger.debug(f"Handling command {command.context}")
        return await factory().handle(command)

    async def _handle_event(self, event: Event) -> List[Message]:
        factory = self._event_handlers.get(type(event))
        if factory is None:
            # Events without a handler are terminal leaves of the chain
            logger.debug(f"No handler for event {event.context}; dropping")
            return []

        logger.debug(f"Handling event {event.context}")
        return await factory().handle(event)
