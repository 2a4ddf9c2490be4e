from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.time_utils import utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    privy_user_id = Column(String, unique=True, index=True, nullable=False)
    # Wallet addresses are stored lower-cased
    wallet = Column(String, unique=True, index=True, nullable=False)
    social_wallet = Column(String, unique=True, index=True, nullable=True)
    display_name = Column(String, nullable=True)
    has_finished_onboarding = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    invited_by_id = Column(Integer, ForeignKey("invite_codes.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    invited_by = relationship("InviteCode", foreign_keys=[invited_by_id], lazy="selectin")
    invite_codes = relationship("InviteCode", back_populates="owner", foreign_keys="InviteCode.user_id", lazy="selectin")
    social_profiles = relationship("SocialProfile", back_populates="user", lazy="selectin", passive_deletes=True)
    recommendations = relationship("RecommendedUser", back_populates="for_user", foreign_keys="RecommendedUser.for_id", passive_deletes=True)
