"""Access Rules - card normalization and the entry/exit toggle.

Tests:
    - First tap (no history) is an entry; entry then exit then entry
    - UNRECOGNIZED history never produces an exit
    - Blank, missing and oversized card ids are rejected as INVALID_INPUT
"""

import pytest

from nfcdesk.core.access_rules import (
    MAX_CARD_ID_LENGTH, USAGE_BY_KIND, next_action, normalize_card_id,
)
from nfcdesk.core.domain_types import AccessAction, EntityKind, UsageContext
from nfcdesk.core.errors import InvalidInputError


def test_first_tap_is_entry():
    assert next_action(None) == AccessAction.ENTRY


def test_toggle_alternates():
    assert next_action(AccessAction.ENTRY) == AccessAction.EXIT
    assert next_action(AccessAction.EXIT) == AccessAction.ENTRY


def test_unrecognized_history_toggles_to_entry():
    assert next_action(AccessAction.UNRECOGNIZED) == AccessAction.ENTRY


def test_normalize_strips_and_uppercases():
    assert normalize_card_id("  04a2b9c1 ") == "04A2B9C1"


@pytest.mark.parametrize("raw", [None, "", "   ", "\t\n"])
def test_normalize_rejects_blank(raw):
    with pytest.raises(InvalidInputError) as exc_info:
        normalize_card_id(raw)
    assert exc_info.value.code == "INVALID_INPUT"
    assert exc_info.value.field == "card_id"
    assert exc_info.value.http_status == 400


def test_normalize_rejects_oversized():
    with pytest.raises(InvalidInputError):
        normalize_card_id("A" * (MAX_CARD_ID_LENGTH + 1))


def test_every_kind_has_usage_context():
    assert USAGE_BY_KIND[EntityKind.PERSON] == UsageContext.ROOM
    assert set(USAGE_BY_KIND) == set(EntityKind)
