"""Card Schemas - card enrolment requests."""

from typing import Literal

from pydantic import BaseModel, Field


class CardAssignRequest(BaseModel):
    card_id: str = Field(min_length=1, max_length=64)
    entity_kind: Literal["person", "book", "computer"]
    entity_id: int = Field(ge=1)


class CardOwnerResponse(BaseModel):
    card_id: str
    entity_kind: str | None = None
    entity_id: int | None = None
