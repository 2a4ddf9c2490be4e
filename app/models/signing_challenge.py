from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text

from app.database import Base
from app.utils.time_utils import utcnow

class SigningChallenge(Base):
    """
    Message a user must sign with the wallet they want to link.

    At most one row per user; re-issuing overwrites it. ``updated_at`` is the
    freshness anchor checked at verification time.
    """
    __tablename__ = "signing_challenges"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    public_key = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
