"""
Serverless Entry Point

Synchronous ``handler(event, context)`` for function runtimes such as AWS
Lambda. The chain runs to completion on a fresh event loop per invocation,
so the handler must be called from synchronous code. Calling it while an
event loop is running raises ``RuntimeError`` before any work starts.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Type

from ..app.bus import MessageBus
from ..core.messages import Command
from ..core.request import MicroServiceRequest

LambdaHandler = Callable[[Any, Any], Dict[str, Any]]


@dataclass
class LambdaConfig:
    """
    Configuration for the serverless entry point.

    Attributes:
        message_bus: Bus running the chain
        request_constructor: Request class providing ``validate_input`` and ``create``
        create_command: Builds the initial command from the request
        logger: Logger receiving structured records
    """
    message_bus: MessageBus
    request_constructor: Type[MicroServiceRequest]
    create_command: Callable[[MicroServiceRequest], Command]
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))


def _external_job_id(event: Any) -> Optional[str]:
    if isinstance(event, dict):
        return event.get("external_job_id")
    return None


def _ensure_no_running_loop() -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return
    raise RuntimeError("Lambda handler must be called outside a running event loop")


def create_lambda_handler(config: LambdaConfig) -> LambdaHandler:
    """Build the function handler for ``config``."""
    bus = config.message_bus
    request_constructor = config.request_constructor
    logger = config.logger

    async def process(event: Any) -> MicroServiceRequest:
        service_request = await request_constructor.create(event)
        await bus.handle(config.create_command(service_request))
        return service_request

    def handler(event: Any, context: Any) -> Dict[str, Any]:
        _ensure_no_running_loop()
        request_id = getattr(context, "aws_request_id", None)
        try:
            logger.info("Processing microservice request", extra={"requestId": request_id, "event": event})

            validation_errors = request_constructor.validate_input(event)
            if validation_errors:
                logger.error(
                    "Input validation failed",
                    extra={"requestId": request_id, "validationErrors": validation_errors, "event": event},
                )
                return {
                    "statusCode": 400,
                    "error": f"Validation failed: {', '.join(validation_errors)}",
                    "external_job_id": _external_job_id(event),
                    "message": "Request validation failed",
                    "requestId": request_id,
                }

            service_request = asyncio.run(process(event))

            logger.info(
                "Request processed successfully",
                extra={"requestId": request_id, "external_job_id": service_request.external_job_id},
            )
            return {
                "statusCode": 200,
                "external_job_id": service_request.external_job_id,
                "message": "Request processed successfully",
                "requestId": request_id,
            }
        except Exception as e:
            logger.exception(
                "Lambda handler failed - processing microservice request",
                extra={"requestId": request_id, "error": str(e), "event": event},
            )
            return {
                "statusCode": 500,
                "error": str(e),
                "external_job_id": _external_job_id(event),
                "message": "Request processing failed",
                "requestId": request_id,
            }

    return handler
