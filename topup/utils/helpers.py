# topup/utils/helpers.py
import random
import string
import time
import uuid
import hashlib
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from topup.core.config import REFRESH_TOKEN_EXPIRE_DAYS
from topup.models.refresh_token import RefreshToken
from topup.models.user import User

BASE36_CHARS = string.digits + string.ascii_lowercase
REFERRAL_CODE_CHARS = string.ascii_uppercase + string.digits


def success_response(data=None, message="Operation successful", pagination=None, summary=None):
    response = {"success": True, "data": data, "message": message}
    if pagination is not None:
        response["pagination"] = pagination
    if summary is not None:
        response["summary"] = summary
    return response


def error_response(code, message, details=None):
    return {"success": False, "error": {"code": code, "message": message, "details": details}}


def to_float(value):
    if value is None:
        return None
    return float(value)


def to_decimal(value) -> Decimal:
    # str() first so floats like 0.1 don't carry binary noise
    return value if isinstance(value, Decimal) else Decimal(str(value))


def generate_transaction_id() -> str:
    """
    Human-readable unique id, e.g. TXN_1718000000000_k3j9x0a2b
    Millisecond timestamp plus 9 random base36 characters.
    """
    suffix = "".join(random.SystemRandom().choice(BASE36_CHARS) for _ in range(9))
    return f"TXN_{int(time.time() * 1000)}_{suffix}"


def generate_referral_code(length: int = 6) -> str:
    return "REF" + "".join(random.SystemRandom().choice(REFERRAL_CODE_CHARS) for _ in range(length))


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode()).hexdigest()


def generate_refresh_token() -> str:
    """
    Generate a secure, unique refresh token
    Can be stored in the database linked to a user
    """
    return str(uuid.uuid4())


def create_refresh_token_entry(user: User, db: Session) -> str:
    token_str = generate_refresh_token()
    expires_at = datetime.utcnow() + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    refresh = RefreshToken(user_id=user.id, token=token_str, expires_at=expires_at)
    db.add(refresh)
    db.commit()
    db.refresh(refresh)
    return refresh.token


def pagination_info(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total_items": total,
        "total_pages": (total + limit - 1) // limit
    }


def mask_email(email: str) -> str:
    try:
        local, domain = email.split("@")
        if len(local) <= 2:
            local_masked = local[0] + "***"
        else:
            local_masked = local[0] + "***" + local[-1]
        return f"{local_masked}@{domain}"
    except ValueError:
        return "***"
