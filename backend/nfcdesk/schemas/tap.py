"""Tap Schemas - request/response models for the tap endpoint and ledger listings.

Invariants:
    - AccessEventResponse mirrors event_payload() so REST and SSE agree on field names

Design Decisions:
    - TapRequest.card_id is not length-checked here: blank or oversized ids reach
      the dispatcher and come back as INVALID_INPUT, the same error a direct
      AccessEngine caller gets
"""

from datetime import datetime

from pydantic import BaseModel, Field


class TapRequest(BaseModel):
    """One card read from a reader bridge."""
    card_id: str
    borrower_id: int | None = Field(None, ge=1)


class AccessEventResponse(BaseModel):
    id: int
    action: str
    card_id: str
    entity_kind: str | None = None
    entity_id: int | None = None
    usage_context: str | None = None
    loan_id: int | None = None
    occurred_at: datetime


class TapResponse(BaseModel):
    """Accepted tap: the appended event plus its side effects."""
    event: AccessEventResponse
    loan_id: int | None = None
    appointment_id: int | None = None
    warnings: list[str] = []


class LatestCardResponse(BaseModel):
    card_id: str | None


class PurgeResponse(BaseModel):
    deleted: int


class PersonResponse(BaseModel):
    id: int
    full_name: str
    email: str | None = None
    person_type: str
    card_id: str | None = None
