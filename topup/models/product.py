# topup/models/product.py
from datetime import datetime
from sqlalchemy import Column, Integer, Text, DateTime, Numeric, Boolean, Enum
from topup.db.base import Base
from topup.models.enums import ProductCategory, DenominationType


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text)
    category = Column(Enum(ProductCategory, name="product_category"), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    base_price = Column(Numeric(12, 2), nullable=False)
    provider = Column(Text, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    min_amount = Column(Numeric(12, 2))
    max_amount = Column(Numeric(12, 2))
    denomination_type = Column(
        Enum(DenominationType, name="denomination_type"),
        default=DenominationType.fixed,
        nullable=False
    )
    image_url = Column(Text)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
