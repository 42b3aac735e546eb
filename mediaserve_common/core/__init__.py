"""Core Layer — pure helpers and typed values, no IO, no event loop.

Invariants:
    - No module in core/ imports from infrastructure/ or api/
    - Clock reads (stopwatch, identifiers) are the only ambient inputs
"""
