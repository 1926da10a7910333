"""
FastAPI Entry Point

Turns an HTTP request into the first command of a chain and reports the
outcome. No business logic lives here.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Type

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.requests import Request

from ..app.bus import MessageBus
from ..config import ApplicationConfig, get_config
from ..core.messages import Command
from ..core.request import MicroServiceRequest

logger = logging.getLogger(__name__)


@dataclass
class ApiConfig:
    """
    Configuration for the HTTP entry point.

    Attributes:
        message_bus: Bus running the chain
        request_constructor: Request class providing ``validate_input`` and ``create``
        create_command: Builds the initial command from the request
        base_path: Path of the processing endpoint
    """
    message_bus: MessageBus
    request_constructor: Type[MicroServiceRequest]
    create_command: Callable[[MicroServiceRequest], Command]
    base_path: str = "/process"


def create_api_entrypoint(config: ApiConfig) -> FastAPI:
    """
    Create the FastAPI application.

    Routes:
        POST <base_path>: validate, build the command and run the chain
        GET /health: liveness probe
    """
    app = FastAPI()
    bus = config.message_bus
    request_constructor = config.request_constructor

    @app.post(config.base_path)
    async def process(request: Request):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JSONResponse(
                {"error": "Validation failed", "details": ["Request body is not valid JSON"]},
                status_code=400,
            )

        try:
            validation_errors = request_constructor.validate_input(body)
            if validation_errors:
                return JSONResponse(
                    {"error": "Validation failed", "details": validation_errors},
                    status_code=400,
                )

            service_request = await request_constructor.create(body)
            command = config.create_command(service_request)
            await bus.handle(command)

            return JSONResponse({
                "message": "Request processed successfully",
                "status": "completed",
                "external_job_id": service_request.external_job_id,
            })
        except Exception as e:
            logger.exception(f"Error processing request: {e}")
            return JSONResponse(
                {"error": "Internal server error", "message": str(e)},
                status_code=500,
            )

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


def start_api_server(app: FastAPI, port: Optional[int] = None, config: Optional[ApplicationConfig] = None) -> None:
    """Serve the app with uvicorn for local development; a no-op in production."""
    config = config or get_config()
    if config.is_production:
        return

    port = port or config.web.port
    logger.info(f"API server listening on http://{config.web.host}:{port}")
    uvicorn.run(app, host=config.web.host, port=port)
