from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from topup.core.config import MAX_PAGE_SIZE
from topup.db.get_db import get_db
from topup.models.user import User
from topup.services import admin_service, transaction_service
from topup.utils.auth import get_current_admin
from topup.utils.error_codes import ERROR_CODES
from topup.utils.helpers import error_response, pagination_info, success_response
from topup.utils.serializers import transaction_to_dict, user_to_dict
from topup.utils.validation_functions import parse_status

router = APIRouter()


@router.get("/stats")
def stats(db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    return success_response(data=admin_service.get_admin_stats(db))


@router.get("/transactions")
def all_transactions(
    user_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    try:
        status_enum = parse_status(status) if status else None
    except ValueError as e:
        return JSONResponse(status_code=400, content=error_response(ERROR_CODES["VALIDATION_ERROR"], str(e)))

    result = transaction_service.get_transactions(db, user_id=user_id, status=status_enum, page=page, limit=limit)
    return success_response(
        data=[transaction_to_dict(t) for t in result.items],
        pagination=pagination_info(page, limit, result.total)
    )


@router.get("/users")
def all_users(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    users, total = admin_service.get_all_users(db, page, limit)
    return success_response(
        data=[user_to_dict(u) for u in users],
        pagination=pagination_info(page, limit, total)
    )


@router.get("/revenue")
def revenue(
    period: str = Query("daily"),
    days: int = Query(30, ge=1, le=366),
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    return success_response(data=admin_service.get_revenue_analytics(db, period=period, days=days))
