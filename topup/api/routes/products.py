from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from topup.db.get_db import get_db
from topup.services import product_service
from topup.utils.error_codes import ERROR_CODES
from topup.utils.helpers import error_response, success_response
from topup.utils.serializers import product_to_dict
from topup.utils.validation_functions import parse_category

router = APIRouter()


@router.get("")
def list_products(
    category: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    try:
        category_enum = parse_category(category) if category else None
    except ValueError as e:
        return JSONResponse(status_code=400, content=error_response(ERROR_CODES["VALIDATION_ERROR"], str(e)))

    products = product_service.get_products(db, category=category_enum, is_active=is_active, search=search)
    return success_response(data=[product_to_dict(p) for p in products])


@router.get("/category/{category}")
def list_products_by_category(category: str, db: Session = Depends(get_db)):
    try:
        category_enum = parse_category(category)
    except ValueError as e:
        return JSONResponse(status_code=400, content=error_response(ERROR_CODES["VALIDATION_ERROR"], str(e)))

    products = product_service.get_products_by_category(db, category_enum)
    return success_response(data=[product_to_dict(p) for p in products])


@router.get("/{product_id}")
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = product_service.get_product_by_id(db, product_id)
    if not product:
        return JSONResponse(status_code=404, content=error_response(ERROR_CODES["NOT_FOUND"], "Product not found"))
    return success_response(data=product_to_dict(product))
