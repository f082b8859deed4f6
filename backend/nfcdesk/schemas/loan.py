"""Loan Schemas - desk reservations, releases and the active-loan board.

Invariants:
    - resource_kind limited to book | computer (people are never loaned)
    - Desk loans always name the operator who lent the item
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoanRequest(BaseModel):
    resource_kind: Literal["book", "computer"]
    resource_id: int = Field(ge=1)
    borrower_id: int = Field(ge=1)
    operator: str = Field(min_length=1, max_length=120)
    loan_days: int | None = Field(default=None, ge=1, le=365)

    @field_validator("operator")
    @classmethod
    def operator_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("operator must not be blank")
        return v


class ReleaseRequest(BaseModel):
    resource_kind: Literal["book", "computer"]
    resource_id: int = Field(ge=1)


class LoanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    resource_kind: str
    resource_id: int
    borrower_id: int
    status: str
    operator: str | None = None
    started_at: datetime
    due_at: datetime | None = None
    ended_at: datetime | None = None


class ActiveLoanResponse(LoanResponse):
    """Loan board row: who holds what and for how long."""
    borrower_name: str
    resource_label: str
    days_remaining: int | None = None
