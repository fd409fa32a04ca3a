"""Pydantic schemas for request/response validation.

Sub-modules:
    search — SearchResponse, SearchParameters, OrganicResult (Serper.dev)
    agent  — AgentRequest/Response, HealthResponse, ErrorResponse
"""

from __future__ import annotations
