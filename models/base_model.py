#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the careers platform models.

- UUID primary key (String(36))
- created_at / updated_at filled by the database (func.now())
- save() through the DBStorage singleton

SQLite hands datetimes back naive; utc_aware() normalizes them before they are
compared with utcnow().
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

# models.storage is created in models/__init__.py
import models

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid_str() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utc_aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BaseModel:
    """Mixin for every persistent model: id, timestamps, save()."""

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, **kwargs):
        # Ids are assigned up front so callers can link rows before flushing
        for key, value in kwargs.items():
            setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id}>"

    def save(self):
        """Stamp updated_at and commit through DBStorage."""
        self.updated_at = utcnow()
        models.storage.new(self)
        models.storage.save()
