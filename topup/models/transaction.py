# topup/models/transaction.py
from datetime import datetime
from sqlalchemy import Column, Integer, Text, DateTime, Numeric, Enum, ForeignKey, JSON
from sqlalchemy.orm import relationship
from topup.db.base import Base
from topup.models.enums import TransactionStatus
from topup.models.user import User  # noqa: F401
from topup.models.product import Product  # noqa: F401


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    transaction_id = Column(Text, unique=True, nullable=False)
    external_transaction_id = Column(Text)
    amount = Column(Numeric(12, 2), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    status = Column(
        Enum(TransactionStatus, name="transaction_status"),
        default=TransactionStatus.pending,
        nullable=False
    )
    customer_phone = Column(Text)
    customer_id = Column(Text)
    customer_name = Column(Text)
    notes = Column(Text)
    provider_response = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", backref="transactions")
    product = relationship("Product", backref="transactions")
