"""Services Layer — session orchestration, session cache and list persistence.

Invariants:
    - Services own all IO; decisions are delegated to core/ pure functions
    - AuthSessionManager is the only writer of SessionCache
"""
