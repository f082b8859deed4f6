"""Access Rules - card normalization and the entry/exit toggle.

Invariants:
    - next_action only ever returns ENTRY or EXIT
    - First tap of an entity (no history) is always ENTRY
    - Toggle is scoped to one entity's history, never the global ledger

Design Decisions:
    - Card ids upper-cased: readers report the same hex UID in either case
"""

from nfcdesk.core.domain_types import (
    AccessAction, CardId, EntityKind, UsageContext,
)
from nfcdesk.core.errors import InvalidInputError

MAX_CARD_ID_LENGTH = 64

USAGE_BY_KIND: dict[EntityKind, UsageContext] = {
    EntityKind.PERSON: UsageContext.ROOM,
    EntityKind.BOOK: UsageContext.BOOK,
    EntityKind.COMPUTER: UsageContext.COMPUTER,
}


def normalize_card_id(raw: str | None) -> CardId:
    """Strip and upper-case a card id. Raises InvalidInputError if empty."""
    if raw is None or not isinstance(raw, str):
        raise InvalidInputError("Card identifier is required", "card_id")
    card = raw.strip().upper()
    if not card:
        raise InvalidInputError("Card identifier is required", "card_id")
    if len(card) > MAX_CARD_ID_LENGTH:
        raise InvalidInputError(
            f"Card identifier longer than {MAX_CARD_ID_LENGTH} characters",
            "card_id",
        )
    return CardId(card)


def next_action(last: AccessAction | None) -> AccessAction:
    """Toggle: after an ENTRY comes an EXIT, otherwise ENTRY."""
    if last == AccessAction.ENTRY:
        return AccessAction.EXIT
    return AccessAction.ENTRY
