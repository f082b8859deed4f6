"""Card Routes - bind and unbind cards to people, books and computers.

Invariants:
    - 409 CARD_ALREADY_ASSIGNED when the card belongs to another entity
    - 404 RESOURCE_NOT_FOUND when the entity or (on delete) the card is unknown
"""

from fastapi import APIRouter, Depends, status

from nfcdesk.api.dependencies import get_engine
from nfcdesk.core.errors import ResourceNotFoundError
from nfcdesk.schemas.card import CardAssignRequest, CardOwnerResponse
from nfcdesk.services.access_engine import AccessEngine

router = APIRouter(prefix="/api/v1/cards", tags=["cards"])


@router.post(
    "", response_model=CardOwnerResponse, status_code=status.HTTP_201_CREATED,
)
async def assign_card(
    body: CardAssignRequest, engine: AccessEngine = Depends(get_engine),
):
    ref = await engine.assign_card(body.card_id, body.entity_kind, body.entity_id)
    return CardOwnerResponse(
        card_id=body.card_id.strip().upper(),
        entity_kind=ref.kind.value,
        entity_id=ref.id,
    )


@router.delete("/{card_id}", response_model=CardOwnerResponse)
async def unassign_card(card_id: str, engine: AccessEngine = Depends(get_engine)):
    owner = await engine.unassign_card(card_id)
    if owner is None:
        raise ResourceNotFoundError("Card", card_id)
    return CardOwnerResponse(
        card_id=card_id.strip().upper(),
        entity_kind=owner.kind.value,
        entity_id=owner.id,
    )
