"""Shared Pydantic schemas for Inspection-Engine."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "inspection-engine"
    database: str = "ok"


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: str = ""
