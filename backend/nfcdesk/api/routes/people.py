"""People Routes - occupancy view derived from the access ledger."""

from fastapi import APIRouter, Depends

from nfcdesk.api.dependencies import get_engine
from nfcdesk.schemas.tap import PersonResponse
from nfcdesk.services.access_engine import AccessEngine

router = APIRouter(prefix="/api/v1/people", tags=["people"])


@router.get("/inside", response_model=list[PersonResponse])
async def people_inside(engine: AccessEngine = Depends(get_engine)):
    """People whose last tap was an entry."""
    people = await engine.people_inside()
    return [
        PersonResponse(
            id=p.id, full_name=p.full_name, email=p.email,
            person_type=p.person_type, card_id=p.card_id,
        )
        for p in people
    ]
