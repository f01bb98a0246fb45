# topup/models/user.py
from datetime import datetime
from sqlalchemy import Column, Integer, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from topup.db.base import Base
from topup.models.enums import AppRole


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(Text, unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    full_name = Column(Text, nullable=False)
    phone_number = Column(Text)
    referral_code = Column(Text, unique=True, nullable=False)
    # Weak reference: the referrer is never owned or cascaded
    referred_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    role = Column(Enum(AppRole, name="app_role"), nullable=False, default=AppRole.user)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    referrer = relationship("User", remote_side=[id], backref="referred_users")
