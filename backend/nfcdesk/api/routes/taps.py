"""Tap Routes - inbound card reads and ledger queries.

Invariants:
    - POST /taps returns 201 with the appended event, or the error envelope
      (409 RESOURCE_UNAVAILABLE, 400 INVALID_INPUT, 503 retryable)
    - DELETE /taps purges the whole ledger (administrative)
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from nfcdesk.api.dependencies import get_engine
from nfcdesk.schemas.tap import (
    AccessEventResponse, LatestCardResponse, PurgeResponse, TapRequest, TapResponse,
)
from nfcdesk.services.access_engine import AccessEngine
from nfcdesk.services.tap_dispatcher import event_payload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/taps", tags=["taps"])


@router.post("", response_model=TapResponse, status_code=status.HTTP_201_CREATED)
async def submit_tap(body: TapRequest, engine: AccessEngine = Depends(get_engine)):
    """Record one card tap."""
    outcome = await engine.submit_tap(body.card_id, body.borrower_id)
    return TapResponse(
        event=AccessEventResponse(**event_payload(outcome.event)),
        loan_id=outcome.loan.id if outcome.loan is not None else None,
        appointment_id=outcome.appointment_id,
        warnings=outcome.warnings,
    )


@router.get("/latest", response_model=LatestCardResponse)
async def latest_card(engine: AccessEngine = Depends(get_engine)):
    """Card id of the most recent tap (card enrolment screen)."""
    return LatestCardResponse(card_id=await engine.latest_card_id())


@router.get("", response_model=list[AccessEventResponse])
async def list_taps(
    limit: int = Query(50, ge=1, le=500),
    card_id: str | None = Query(None, description="Only this card's history"),
    engine: AccessEngine = Depends(get_engine),
):
    events = await engine.recent_events(limit, card_id)
    return [AccessEventResponse(**event_payload(e)) for e in events]


@router.delete("", response_model=PurgeResponse)
async def purge_taps(engine: AccessEngine = Depends(get_engine)):
    return PurgeResponse(deleted=await engine.purge_events())
