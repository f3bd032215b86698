"""
Pydantic models for API responses.

Event endpoints answer with ``HandlerResult`` from the domain; only the
health check has a model of its own.
"""

from pydantic import BaseModel


class HealthCheckResponse(BaseModel):
    status: str
    version: str
