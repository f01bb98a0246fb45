# topup/services/catalog_service.py
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from topup.gateways.digiflazz import ProviderGateway, map_category
from topup.models.enums import DenominationType
from topup.models.product import Product
from topup.schemas.digiflazz import DigiflazzService
from topup.utils.helpers import to_decimal

logger = logging.getLogger(__name__)


def _product_fields(service: DigiflazzService) -> dict:
    price = to_decimal(service.price)
    return {
        "name": service.product_name,
        "description": service.desc,
        "category": map_category(service.category, service.brand),
        "price": price,
        "base_price": price,
        "provider": service.seller_name,
        "is_active": service.buyer_product_status and service.seller_product_status,
        "min_amount": Decimal("1") if service.multi else None,
        "max_amount": None if service.unlimited_stock else Decimal(service.stock),
        "denomination_type": DenominationType.range if service.multi else DenominationType.fixed,
    }


def upsert_product(db: Session, service: DigiflazzService) -> Product:
    fields = _product_fields(service)
    now = datetime.utcnow()
    product = db.query(Product).filter(Product.sku == service.buyer_sku_code).first()
    if product:
        for key, value in fields.items():
            setattr(product, key, value)
        product.updated_at = now
    else:
        product = Product(sku=service.buyer_sku_code, created_at=now, updated_at=now, **fields)
        db.add(product)
    db.flush()
    return product


def sync_catalog(db: Session, gateway: ProviderGateway) -> dict:
    """
    Upsert the provider's price list into the catalog by SKU.
    A failing entry is reported in `errors` and does not stop the others.
    """
    services = gateway.get_services()
    synced = 0
    errors = []

    for service in services:
        try:
            with db.begin_nested():
                upsert_product(db, service)
            synced += 1
        except SQLAlchemyError as e:
            message = f"Failed to sync product {service.buyer_sku_code}: {e}"
            logger.error(message)
            errors.append(message)

    db.commit()
    logger.info("Catalog sync finished: %s synced, %s errors", synced, len(errors))
    return {"synced": synced, "errors": errors}
