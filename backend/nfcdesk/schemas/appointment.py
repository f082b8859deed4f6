"""Appointment Schemas - scheduling requests and lifecycle listings.

Invariants:
    - scheduled_date/scheduled_time are facility-local wall-clock values
    - Free-text fields stripped; empty strings become None
"""

from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppointmentCreate(BaseModel):
    person_id: int = Field(ge=1)
    scheduled_date: date
    scheduled_time: time
    area: str | None = Field(None, max_length=100)
    topic: str | None = Field(None, max_length=200)
    assistance_type: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=2000)

    @field_validator("area", "topic", "assistance_type", "notes")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    person_id: int
    scheduled_date: date
    scheduled_time: time
    area: str | None = None
    topic: str | None = None
    assistance_type: str | None = None
    notes: str | None = None
    status: str
    checked_in_at: datetime | None = None
    closed_at: datetime | None = None


class SweepResponse(BaseModel):
    completed: list[int]
    missed: list[int]
    skipped: list[int]
