"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - Entity references are a closed tagged union: PersonRef | BookRef | ComputerRef
    - All valid states encoded as Enums - no raw string matching
    - Enum values are the exact strings persisted in the status/action columns

Design Decisions:
    - Frozen dataclasses for refs: hashable (usable as lock keys) and matchable
      with structural pattern matching in the dispatcher
    - str Enums: serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType, Union


# ─── Identity Types ──────────────────────────────────────────────

CardId = NewType("CardId", str)
EventSeq = NewType("EventSeq", int)


# ─── Enums ───────────────────────────────────────────────────────

class EntityKind(str, Enum):
    """The three kinds of entity a card can be bound to."""
    PERSON = "person"
    BOOK = "book"
    COMPUTER = "computer"


class AccessAction(str, Enum):
    """Action recorded on an access event."""
    ENTRY = "entry"
    EXIT = "exit"
    UNRECOGNIZED = "unrecognized_tap"


class UsageContext(str, Enum):
    """Loan-context tag stored on every access event."""
    ROOM = "room"
    BOOK = "book"
    COMPUTER = "computer"


class ResourceStatus(str, Enum):
    """Book/Computer status column - written only by the resource guard."""
    FREE = "free"
    LOANED = "loaned"
    MAINTENANCE = "maintenance"


class LoanStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class AppointmentStatus(str, Enum):
    """Appointment lifecycle states - maps to DB `status` column."""
    SCHEDULED = "scheduled"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    MISSED = "missed"


class ReminderSubject(str, Enum):
    LOAN = "loan"
    APPOINTMENT = "appointment"


# ─── Entity References ───────────────────────────────────────────

@dataclass(frozen=True)
class PersonRef:
    id: int

    @property
    def kind(self) -> EntityKind:
        return EntityKind.PERSON


@dataclass(frozen=True)
class BookRef:
    id: int

    @property
    def kind(self) -> EntityKind:
        return EntityKind.BOOK


@dataclass(frozen=True)
class ComputerRef:
    id: int

    @property
    def kind(self) -> EntityKind:
        return EntityKind.COMPUTER


EntityRef = Union[PersonRef, BookRef, ComputerRef]
ResourceRef = Union[BookRef, ComputerRef]


def make_ref(kind: EntityKind, entity_id: int) -> EntityRef:
    """Build the tagged reference for a (kind, id) pair."""
    match EntityKind(kind):
        case EntityKind.PERSON:
            return PersonRef(entity_id)
        case EntityKind.BOOK:
            return BookRef(entity_id)
        case EntityKind.COMPUTER:
            return ComputerRef(entity_id)
