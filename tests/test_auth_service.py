import re
from datetime import timedelta

import pytest

from topup.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from topup.models.user import User
from topup.services import auth_service
from topup.utils.auth import create_access_token


def _register(db, email="budi@example.com", password="password123", full_name="Budi Santoso", **kwargs):
    return auth_service.register(db, email=email, password=password, full_name=full_name, **kwargs)


def test_register_returns_user_and_tokens(db):
    data = _register(db, phone_number="0812-3456-7890")

    user = data["user"]
    assert user["email"] == "budi@example.com"
    assert user["role"] == "user"
    assert user["referred_by_id"] is None
    assert re.fullmatch(r"REF[A-Z0-9]{6}", user["referral_code"])
    assert data["token"]
    assert data["refresh_token"]
    assert data["expires_in"] > 0


def test_register_normalizes_email(db):
    data = _register(db, email="  Budi@Example.COM ")

    assert data["user"]["email"] == "budi@example.com"
    with pytest.raises(ConflictError):
        _register(db, email="budi@example.com")


def test_register_links_referrer(db, make_user):
    referrer = make_user()

    data = _register(db, referral_code=referrer.referral_code)

    assert data["user"]["referred_by_id"] == referrer.id


def test_register_with_unknown_referral_code_has_no_referrer(db):
    data = _register(db, referral_code="REFZZZZZZ")

    assert data["user"]["referred_by_id"] is None


@pytest.mark.parametrize("kwargs,message", [
    ({"email": "not-an-email"}, "Invalid email format"),
    ({"password": "short"}, "Password must be at least 8 characters"),
    ({"full_name": "   "}, "Full name is required"),
])
def test_register_validation(db, kwargs, message):
    with pytest.raises(ValidationError) as exc:
        _register(db, **kwargs)
    assert exc.value.message == message


def test_register_retries_referral_code_collision(db, make_user, monkeypatch):
    existing = make_user()
    codes = iter([existing.referral_code, existing.referral_code, "REFNEW001"])
    monkeypatch.setattr(auth_service, "generate_referral_code", lambda: next(codes))

    data = _register(db)

    assert data["user"]["referral_code"] == "REFNEW001"
    assert db.query(User).count() == 2


def test_register_gives_up_after_repeated_collisions(db, make_user, monkeypatch):
    existing = make_user()
    monkeypatch.setattr(auth_service, "generate_referral_code", lambda: existing.referral_code)

    with pytest.raises(InternalError):
        _register(db)
    assert db.query(User).count() == 1


def test_login_success(db):
    _register(db)

    data = auth_service.login(db, "BUDI@example.com", "password123")

    assert data["user"]["email"] == "budi@example.com"
    assert data["token"]


def test_login_failures_share_one_message(db):
    _register(db)

    with pytest.raises(AuthenticationError) as wrong_password:
        auth_service.login(db, "budi@example.com", "wrong-password")
    with pytest.raises(AuthenticationError) as unknown_email:
        auth_service.login(db, "nobody@example.com", "password123")

    assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"
    assert wrong_password.value.status_code == 401


@pytest.mark.parametrize("email,password", [
    (123, "password123"),
    ("budi@example.com", 12345678),
    (None, None),
])
def test_login_with_non_string_credentials_is_rejected(db, email, password):
    _register(db)

    with pytest.raises(AuthenticationError) as exc:
        auth_service.login(db, email, password)
    assert exc.value.message == "Invalid email or password"


@pytest.mark.parametrize("field,value", [
    ("email", 123),
    ("password", 12345678),
    ("phone_number", 81234567890),
])
def test_register_rejects_non_string_fields(db, field, value):
    with pytest.raises(ValidationError) as exc:
        _register(db, **{field: value})
    assert exc.value.message == f"{field} must be a string"
    assert db.query(User).count() == 0


def test_verify_token(db, make_user):
    user = make_user()
    token = create_access_token({"user_id": user.id, "role": user.role.value})

    assert auth_service.verify_token(db, token)["id"] == user.id


def test_verify_token_rejects_expired_and_garbage(db, make_user):
    user = make_user()
    expired = create_access_token({"user_id": user.id, "role": "user"}, expires_delta=timedelta(seconds=-5))

    with pytest.raises(AuthenticationError) as exc:
        auth_service.verify_token(db, expired)
    assert exc.value.message == "Token has expired"

    with pytest.raises(AuthenticationError):
        auth_service.verify_token(db, "not.a.jwt")


def test_verify_token_for_deleted_user(db):
    token = create_access_token({"user_id": 999, "role": "user"})

    with pytest.raises(NotFoundError):
        auth_service.verify_token(db, token)


def test_refresh_and_revoke(db):
    refresh_token = _register(db)["refresh_token"]

    assert auth_service.refresh_access_token(db, refresh_token)["token"]
    assert auth_service.revoke_refresh_token(db, refresh_token) is True

    with pytest.raises(AuthenticationError):
        auth_service.refresh_access_token(db, refresh_token)
    assert auth_service.revoke_refresh_token(db, "unknown") is False
