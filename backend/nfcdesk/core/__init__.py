"""Core Layer - pure domain rules, no IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic (time is always a parameter)

Design Decisions:
    - Functional core separated from imperative shell: services read rows,
      ask core what to do, then write
"""
