"""Infrastructure Layer — timers, outbound HTTP, database and logging.

Invariants:
    - Every armed timer is owned by exactly one TimerRegistry
    - All external calls are bounded by a deadline and mapped to typed errors
"""
