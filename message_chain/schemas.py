"""Request/response schemas for API endpoints.

Holds Pydantic models to validate input payloads and shape responses
for the entry endpoint (/api/message), the internal hop endpoints
(/internal/service-b/append, /internal/service-c/finalize) and the
template endpoints. This keeps contracts explicit and centralized.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _not_blank(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field} is required")
    return value


class ChainLink(BaseModel):
    """One hop's contribution to the chain. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    service: str
    contribution: str
    timestamp: datetime
    origin_address: Optional[str] = None


class ChainRequest(BaseModel):
    current_message: str

    @field_validator("current_message")
    @classmethod
    def _check_message(cls, v: str) -> str:
        return _not_blank(v, "current_message")


class ChainResponse(BaseModel):
    """What hops B and C hand back to their caller."""

    application_name: Optional[str] = None
    message: str
    chain: List[ChainLink] = Field(default_factory=list)


class AggregateResult(BaseModel):
    application_name: Optional[str] = None
    message: str
    chain: List[ChainLink]
    complete: bool = True
    total_length: int
    processing_time_ms: int


class UpdateTemplateRequest(BaseModel):
    template: str

    @field_validator("template")
    @classmethod
    def _check_template(cls, v: str) -> str:
        return _not_blank(v, "template")


class TemplateResponse(BaseModel):
    application_name: Optional[str] = None
    service: str
    template: str
    updated_at: datetime
    message: str


class ErrorEnvelope(BaseModel):
    error_kind: str
    message: str
    failed_service: Optional[str] = None
    details: Optional[str] = None
    partial_message: Optional[str] = None
    retry_after_seconds: Optional[int] = None
