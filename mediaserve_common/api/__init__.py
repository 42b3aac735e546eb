"""API Layer — FastAPI bootstrapper, request context and error handlers.

Invariants:
    - Routes registered explicitly in create_app (no auto-discovery)
    - All error responses share the MediaServeError envelope
"""
