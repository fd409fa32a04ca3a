"""Request/response schemas for the agent and health endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AgentRequest(BaseModel):
    """Body of ``POST /api/agent1``."""

    query: str = Field(..., description="Natural-language question.")

    def is_valid(self) -> bool:
        """Return ``True`` when the query contains non-whitespace text."""
        return bool(self.query.strip())


class AgentResponse(BaseModel):
    """Successful agent answer."""

    answer: str


class HealthResponse(BaseModel):
    """Shallow liveness payload returned by ``GET /health``."""

    status: str
    message: str

    @classmethod
    def ok(cls) -> HealthResponse:
        return cls(status="ok", message="Service is healthy")


class ErrorResponse(BaseModel):
    """Error envelope shared by all non-2xx agent responses.

    Attributes:
        error: Machine-readable code, e.g. ``VALIDATION_ERROR`` or
            ``INTERNAL_SERVER_ERROR``.
        message: Human-readable description.
    """

    error: str
    message: str


class DeepHealthResponse(BaseModel):
    """Payload of ``GET /api/health``."""

    status: str
    browser: str
    version: str
    timestamp: str
