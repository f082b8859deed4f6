"""Appointment Routes - scheduling, daily listing and the manual sweep trigger."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from nfcdesk.api.dependencies import get_engine
from nfcdesk.schemas.appointment import (
    AppointmentCreate, AppointmentResponse, SweepResponse,
)
from nfcdesk.services.access_engine import AccessEngine

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])


@router.post(
    "", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED,
)
async def schedule_appointment(
    body: AppointmentCreate, engine: AccessEngine = Depends(get_engine),
):
    appointment = await engine.schedule_appointment(**body.model_dump())
    return AppointmentResponse.model_validate(appointment)


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    day: date | None = Query(None, alias="date"),
    engine: AccessEngine = Depends(get_engine),
):
    """All appointments, or only those of ?date=YYYY-MM-DD."""
    appointments = await engine.appointments(day)
    return [AppointmentResponse.model_validate(a) for a in appointments]


@router.post("/sweep", response_model=SweepResponse)
async def sweep_appointments(engine: AccessEngine = Depends(get_engine)):
    report = await engine.sweep_appointments()
    return SweepResponse(
        completed=report.completed, missed=report.missed, skipped=report.skipped,
    )
