"""
RefreshToken model: the server-side half of a login session.
Fields:
- token (unique) - the signed refresh JWT handed out in the cookie
- user_id (String(36)) - FK to users.id, cascades on user delete
- expires_at, created_at

A row is live until logout deletes it or a refresh attempt finds it expired.
Tokens are not rotated: the same row backs every refresh of its session.
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship

import models
from models.base_model import BaseModel, Base, utcnow, utc_aware


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(Text, nullable=False, unique=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="refresh_tokens")

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} expires_at={self.expires_at}>"

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utcnow()) > utc_aware(self.expires_at)

    @classmethod
    def issue(cls, user_id: str, token: str, expires_at: datetime) -> "RefreshToken":
        row = cls(user_id=user_id, token=token, expires_at=expires_at)
        models.storage.new(row)
        models.storage.save()
        return row

    @classmethod
    def find(cls, token: str) -> "RefreshToken | None":
        return models.storage.first(cls, token=token)

    @classmethod
    def revoke(cls, token: str) -> int:
        """Delete the row holding this token; returns how many rows went away."""
        session = models.storage.get_session()
        deleted = session.query(cls).filter(cls.token == token).delete(synchronize_session=False)
        models.storage.save()
        return deleted
