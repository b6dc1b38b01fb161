"""Preference ORM — namespaced key/value pairs backing the durable session cache.

Invariants:
    - (namespace, key) is the primary key: one value per key per namespace
    - value is JSON (booleans, strings, ISO timestamps)
"""

from typing import Any

from sqlalchemy import String, JSON
from sqlalchemy.orm import Mapped, mapped_column

from rize.db.base import Base


class Preference(Base):
    __tablename__ = "preferences"

    namespace: Mapped[str] = mapped_column(String(200), primary_key=True)
    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
