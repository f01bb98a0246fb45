# topup/services/auth_service.py
import logging
from datetime import datetime
from typing import Optional

import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from topup.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, REFERRAL_CODE_ATTEMPTS
from topup.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from topup.models.enums import AppRole
from topup.models.refresh_token import RefreshToken
from topup.models.user import User
from topup.services.referral_service import validate_referral_code
from topup.utils.auth import create_access_token, decode_access_token, verify_password
from topup.utils.helpers import (
    create_refresh_token_entry,
    generate_referral_code,
    hash_password,
    mask_email,
)
from topup.utils.serializers import user_to_dict
from topup.utils.validation_functions import (
    validate_email,
    validate_indonesian_phone,
    validate_password_strength,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
DUPLICATE_EMAIL = "User with this email already exists"


def _auth_payload(db: Session, user: User) -> dict:
    access_token = create_access_token({"user_id": user.id, "role": user.role.value})
    return {
        "user": user_to_dict(user),
        "token": access_token,
        "refresh_token": create_refresh_token_entry(user, db),
        "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60
    }


def register(
    db: Session,
    email: str,
    password: str,
    full_name: str,
    phone_number: Optional[str] = None,
    referral_code: Optional[str] = None,
    role: AppRole = AppRole.user
) -> dict:
    for name, value in (("email", email), ("password", password), ("full_name", full_name),
                        ("phone_number", phone_number), ("referral_code", referral_code)):
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{name} must be a string")

    email = (email or "").strip().lower()
    if not email or not validate_email(email):
        raise ValidationError("Invalid email format")
    if not validate_password_strength(password):
        raise ValidationError("Password must be at least 8 characters")
    if not full_name or not full_name.strip():
        raise ValidationError("Full name is required")
    if phone_number:
        try:
            phone_number = validate_indonesian_phone(phone_number)
        except ValueError as e:
            raise ValidationError(str(e))

    if db.query(User.id).filter(User.email == email).first():
        raise ConflictError(DUPLICATE_EMAIL)

    # An unknown referral code registers the user without a referrer
    referrer = validate_referral_code(db, referral_code)
    referred_by_id = referrer.get("referrer_id")
    if referral_code and not referrer["valid"]:
        logger.info("Ignoring unknown referral code %s for %s", referral_code, mask_email(email))

    password_hash = hash_password(password)
    for attempt in range(1, REFERRAL_CODE_ATTEMPTS + 1):
        now = datetime.utcnow()
        user = User(
            email=email,
            password_hash=password_hash,
            full_name=full_name.strip(),
            phone_number=phone_number or None,
            referral_code=generate_referral_code(),
            referred_by_id=referred_by_id,
            role=role,
            created_at=now,
            updated_at=now
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            # Lost a race on the email, or drew a referral code already in use
            if db.query(User.id).filter(User.email == email).first():
                raise ConflictError(DUPLICATE_EMAIL)
            logger.warning("Referral code collision on attempt %s, retrying", attempt)
            continue

        db.refresh(user)
        logger.info("Registered user %s (referred_by=%s)", user.id, referred_by_id)
        return _auth_payload(db, user)

    raise InternalError("Could not allocate a unique referral code")


def login(db: Session, email: str, password: str) -> dict:
    user = None
    # Non-string credentials get the same answer as wrong ones
    if isinstance(email, str) and isinstance(password, str) and email and password:
        user = db.query(User).filter(User.email == email.strip().lower()).first()

    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError(INVALID_CREDENTIALS)

    return _auth_payload(db, user)


def verify_token(db: Session, token: str) -> dict:
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    user = db.query(User).filter(User.id == payload.get("user_id")).first()
    if not user:
        raise NotFoundError("User")
    return user_to_dict(user)


def refresh_access_token(db: Session, token_str: str) -> dict:
    refresh = db.query(RefreshToken).filter(
        RefreshToken.token == token_str,
        RefreshToken.revoked.is_(False),
        RefreshToken.expires_at > datetime.utcnow()
    ).first()
    if not refresh:
        raise AuthenticationError("Invalid or expired refresh token")

    user = refresh.user
    return {
        "token": create_access_token({"user_id": user.id, "role": user.role.value}),
        "expires_in": ACCESS_TOKEN_EXPIRE_MINUTES * 60
    }


def revoke_refresh_token(db: Session, token_str: str) -> bool:
    refresh = db.query(RefreshToken).filter(RefreshToken.token == token_str).first()
    if not refresh:
        return False
    refresh.revoked = True
    db.commit()
    return True
