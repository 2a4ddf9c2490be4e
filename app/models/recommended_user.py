from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.time_utils import utcnow

class RecommendedUser(Base):
    __tablename__ = "recommended_users"

    id = Column(Integer, primary_key=True)
    # User the recommendation is shown to
    for_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Registered account behind the recommended wallet, when there is one
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    wallet = Column(String, nullable=False, index=True)
    display_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    recommendation_score = Column(Float, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    for_user = relationship("User", back_populates="recommendations", foreign_keys=[for_id])
    user = relationship("User", foreign_keys=[user_id])
