# topup/utils/auth.py

import hmac
import jwt
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from topup.db.get_db import get_db
from topup.models.user import User
from topup.models.enums import AppRole
from topup.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from topup.utils.helpers import hash_password

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    """
    Generate JWT token for user
    Expect data to contain: {"user_id": <int>, "role": <AppRole value>}
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError on bad tokens."""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])


def verify_password(plain_password: str, password_hash: str) -> bool:
    return hmac.compare_digest(hash_password(plain_password), password_hash)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the caller from the Bearer token."""
    if not credentials:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")

    user_id = payload.get("user_id")
    user = db.query(User).filter(User.id == user_id).first() if user_id is not None else None
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")

    return user


def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != AppRole.admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
