"""ORM Models - SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Entity tables (people, books, computers) share one card namespace (card_assignments)

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from nfcdesk.models.person import Person  # noqa: F401
from nfcdesk.models.book import Book  # noqa: F401
from nfcdesk.models.computer import Computer  # noqa: F401
from nfcdesk.models.card_assignment import CardAssignment  # noqa: F401
from nfcdesk.models.loan import Loan  # noqa: F401
from nfcdesk.models.access_event import AccessEvent  # noqa: F401
from nfcdesk.models.appointment import Appointment  # noqa: F401
from nfcdesk.models.reminder_notification import ReminderNotification  # noqa: F401
