from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from topup.db.get_db import get_db
from topup.models.user import User
from topup.services import referral_service
from topup.utils.auth import get_current_admin, get_current_user
from topup.utils.error_codes import ERROR_CODES
from topup.utils.helpers import error_response, success_response
from topup.utils.serializers import referral_to_dict

router = APIRouter()


@router.get("/earnings")
def my_earnings(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return success_response(data=referral_service.get_user_referral_earnings(db, current_user.id))


@router.get("/referred-users")
def my_referred_users(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return success_response(data=referral_service.get_user_referrals(db, current_user.id))


@router.get("/validate/{code}")
def validate_code(code: str, db: Session = Depends(get_db)):
    return success_response(data=referral_service.validate_referral_code(db, code))


@router.get("/users/{user_id}/earnings")
def user_earnings(user_id: int, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    return success_response(data=referral_service.get_user_referral_earnings(db, user_id))


@router.post("/{referral_id}/mark-paid")
def mark_paid(referral_id: int, db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    referral = referral_service.mark_referral_as_paid(db, referral_id)
    if not referral:
        return JSONResponse(status_code=404, content=error_response(ERROR_CODES["NOT_FOUND"], "Referral not found"))
    return success_response(data=referral_to_dict(referral), message="Referral marked as paid")
