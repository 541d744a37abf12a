"""
UserSession model: one row per live refresh token.

Fields:
- user_id (String(36)) - FK to users.id, cascades on delete
- token_digest - sha256 hex of the refresh token, the only form it is stored in
- created_at, updated_at
"""
import hashlib

from sqlalchemy import Column, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


def token_digest(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8", "surrogatepass")).hexdigest()


class UserSession(BaseModel, Base):
    __tablename__ = "user_sessions"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_digest = Column(String(64), nullable=False)

    user = relationship("User", back_populates="sessions")

    __table_args__ = (
        Index("ix_user_sessions_user_digest", "user_id", "token_digest"),
    )

    def __repr__(self):
        return f"<UserSession user={self.user_id}>"
