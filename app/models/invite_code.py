from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.time_utils import utcnow

class InviteCode(Base):
    __tablename__ = "invite_codes"
    __table_args__ = (
        CheckConstraint("used <= max_uses", name="ck_invite_codes_used_le_max_uses"),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, index=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    used = Column(Integer, default=0, nullable=False)
    max_uses = Column(Integer, default=1, nullable=False)
    # Account allowed to hand this code out, if any
    user_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_invite_codes_user_id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    owner = relationship("User", back_populates="invite_codes", foreign_keys=[user_id])
