"""Database Infrastructure — SQLAlchemy Base shared by all stores.

Invariants:
    - All sessions are async (AsyncSession) over aiosqlite
"""
