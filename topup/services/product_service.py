# topup/services/product_service.py
from typing import List, Optional

from sqlalchemy.orm import Session

from topup.models.enums import ProductCategory
from topup.models.product import Product


def get_products(
    db: Session,
    category: Optional[ProductCategory] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None
) -> List[Product]:
    query = db.query(Product)
    if category is not None:
        query = query.filter(Product.category == ProductCategory(category))
    if is_active is not None:
        query = query.filter(Product.is_active.is_(is_active))
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product_by_id(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()


def get_products_by_category(db: Session, category: ProductCategory) -> List[Product]:
    return db.query(Product).filter(
        Product.category == ProductCategory(category),
        Product.is_active.is_(True)
    ).order_by(Product.price.asc(), Product.id.asc()).all()
