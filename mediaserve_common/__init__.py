"""MediaServe Common — shared toolkit for the MediaServe family of HTTP services.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
    - Timer registries are owned by Service instances, never by a module

Design Decisions:
    - Explicit imports from submodules, no star exports
"""
