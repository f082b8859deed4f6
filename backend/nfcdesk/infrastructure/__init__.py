"""Infrastructure Layer - database, locks, broadcasting, scheduling, logging.

Invariants:
    - Infrastructure never decides domain outcomes (no toggle or lifecycle rules here)
    - Outbound side channels (broadcast, reminders) never raise into the caller
"""
