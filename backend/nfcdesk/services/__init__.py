"""Services Layer - directory, ledger, guard, lifecycle, dispatcher, engine.

Invariants:
    - Services own their tables: only the ledger writes access_events, only the
      guard writes loans and resource status, only the lifecycle writes
      appointment status
    - Components are built around one AsyncSession per unit of work; the engine
      opens and closes the sessions

Design Decisions:
    - Explicit wiring in access_engine.py (no auto-discovery)
"""
