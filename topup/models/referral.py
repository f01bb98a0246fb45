# topup/models/referral.py
from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, Numeric, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from topup.db.base import Base
from topup.models.user import User  # noqa: F401
from topup.models.transaction import Transaction  # noqa: F401


class Referral(Base):
    __tablename__ = "referrals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    referrer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    referred_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    commission_amount = Column(Numeric(12, 2), nullable=False)
    # One commission per transaction, enforced by the store
    transaction_id = Column(Integer, ForeignKey("transactions.id"), unique=True, nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    referrer = relationship("User", foreign_keys=[referrer_id])
    referred = relationship("User", foreign_keys=[referred_id])
    transaction = relationship("Transaction", backref="referrals")
