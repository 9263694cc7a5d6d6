"""
공통 Pydantic 스키마
"""

from datetime import datetime
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    db_connected: bool
    sequence_backend: str
    timestamp: datetime


class MessageResponse(BaseModel):
    message: str
    detail: str | None = None


class FieldErrorResponse(BaseModel):
    field: str
    code: str
    message: str
    available: int | None = None
    requested: int | None = None
    shortage: int | None = None


class ValidationFailedResponse(BaseModel):
    error: str = "VALIDATION_FAILED"
    errors: list[FieldErrorResponse]
