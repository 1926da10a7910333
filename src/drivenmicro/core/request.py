"""
Microservice Request

Typed request objects built by the entry points before a command is
created. Validation produces plain error strings so the adapters can return
them to the caller without knowing about pydantic.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class MicroServiceRequest(BaseModel):
    """Base class for all inbound requests handled by the entry points."""
    model_config = ConfigDict(frozen=True)

    external_job_id: str = Field(min_length=1)

    @classmethod
    def validate_input(cls, payload: Any) -> List[str]:
        """
        Validate raw input against the request schema.

        Args:
            payload: Decoded request body or serverless event

        Returns:
            List of validation error strings, empty when the input is valid
        """
        if not isinstance(payload, dict):
            return ["Request body must be a JSON object"]

        try:
            cls.model_validate(payload)
        except ValidationError as exc:
            errors = []
            for error in exc.errors():
                location = ".".join(str(part) for part in error["loc"]) or "body"
                errors.append(f"{location}: {error['msg']}")
            return errors
        return []

    @classmethod
    async def create(cls, payload: Dict[str, Any]) -> 'MicroServiceRequest':
        """Build the typed request from already validated input."""
        return cls.model_validate(payload)

    def serialize(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
