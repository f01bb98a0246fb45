from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from topup.api.deps import non_string_fields, read_json
from topup.db.get_db import get_db
from topup.models.user import User
from topup.services import auth_service
from topup.utils.auth import get_current_user
from topup.utils.error_codes import ERROR_CODES
from topup.utils.helpers import error_response, success_response
from topup.utils.serializers import user_to_dict

router = APIRouter()


@router.post("/register")
async def register(request: Request, db: Session = Depends(get_db)):
    body = await read_json(request)
    email = body.get("email")
    password = body.get("password")
    full_name = body.get("full_name")

    if not all([email, password, full_name]):
        return JSONResponse(
            status_code=400,
            content=error_response(ERROR_CODES["VALIDATION_ERROR"], "Missing required fields: email, password, full_name")
        )

    optional = {k: body.get(k) for k in ("phone_number", "referral_code")}
    not_strings = non_string_fields({"email": email, "password": password, "full_name": full_name, **optional})
    if not_strings:
        return JSONResponse(
            status_code=400,
            content=error_response(
                ERROR_CODES["VALIDATION_ERROR"],
                f"Fields must be strings: {', '.join(not_strings)}",
                {"fields": not_strings}
            )
        )

    data = auth_service.register(
        db,
        email=email,
        password=password,
        full_name=full_name,
        phone_number=optional["phone_number"],
        referral_code=optional["referral_code"]
    )
    return JSONResponse(status_code=201, content=success_response(data=data, message="Registration successful"))


@router.post("/login")
async def login(request: Request, db: Session = Depends(get_db)):
    body = await read_json(request)
    data = auth_service.login(db, body.get("email"), body.get("password"))
    return success_response(data=data, message="Login successful")


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return success_response(data=user_to_dict(user))


@router.post("/refresh")
async def refresh_token(request: Request, db: Session = Depends(get_db)):
    body = await read_json(request)
    token_str = body.get("refresh_token")

    if not token_str or not isinstance(token_str, str):
        return JSONResponse(
            status_code=400,
            content=error_response(ERROR_CODES["VALIDATION_ERROR"], "Refresh token required")
        )

    return success_response(data=auth_service.refresh_access_token(db, token_str))


@router.post("/logout")
async def logout(request: Request, db: Session = Depends(get_db)):
    body = await read_json(request)
    token_str = body.get("refresh_token")
    if isinstance(token_str, str) and token_str:
        auth_service.revoke_refresh_token(db, token_str)
    return success_response(message="Logged out successfully")
