import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["USE_MOCK_DIGIFLAZZ"] = "true"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ["SECRET_KEY"] = "test-secret"

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
import requests  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from topup.api.deps import get_provider_gateway  # noqa: E402
from topup.core.config import ProviderSettings  # noqa: E402
from topup.db.base import Base  # noqa: E402
from topup.db.get_db import get_db, init_db  # noqa: E402
from topup.gateways.digiflazz import DigiflazzGateway, MockDigiflazzGateway, ProviderOutcome  # noqa: E402
from topup.models.enums import AppRole, DenominationType, ProductCategory  # noqa: E402
from topup.models.product import Product  # noqa: E402
from topup.models.user import User  # noqa: E402
from topup.utils.auth import create_access_token  # noqa: E402
from topup.utils.helpers import generate_referral_code, hash_password  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT to behave
    @event.listens_for(engine, "connect")
    def _no_implicit_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def provider_settings():
    return ProviderSettings(username="tester", api_key="secret-key", base_url="https://provider.test/v1")


@pytest.fixture
def gateway(provider_settings):
    return MockDigiflazzGateway(provider_settings, outcome=ProviderOutcome.success)


class FakeResponse:
    def __init__(self, body=None, status_code=200, invalid_json=False):
        self.body = body
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self.invalid_json:
            # What requests raises for a non-JSON body
            raise requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
        return self.body


class FakeSession:
    """Records every POST and answers with one canned response or error."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, json=None, timeout=None):
        self.requests.append({"url": url, "json": json, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def http_gateway(provider_settings):
    """A real DigiflazzGateway over a FakeSession; returns (gateway, session)."""

    def _http_gateway(body=None, status_code=200, invalid_json=False, error=None):
        session = FakeSession(FakeResponse(body, status_code, invalid_json), error=error)
        return DigiflazzGateway(provider_settings, session=session), session

    return _http_gateway


@pytest.fixture
def client(db, gateway):
    from main import app

    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_provider_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(email=None, referred_by=None, role=AppRole.user, password="password123", full_name=None):
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            password_hash=hash_password(password),
            full_name=full_name or f"User {counter['n']}",
            referral_code=generate_referral_code(),
            referred_by_id=referred_by.id if referred_by else None,
            role=role
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make_product(price="5500", denomination_type=DenominationType.fixed, min_amount=None,
                      max_amount=None, is_active=True, category=ProductCategory.mobile_credit,
                      name=None, sku=None):
        counter["n"] += 1
        product = Product(
            sku=sku or f"SKU_{counter['n']}",
            name=name or f"Product {counter['n']}",
            category=category,
            price=Decimal(price),
            base_price=Decimal(price),
            provider="DIGIFLAZZ",
            is_active=is_active,
            min_amount=Decimal(min_amount) if min_amount is not None else None,
            max_amount=Decimal(max_amount) if max_amount is not None else None,
            denomination_type=denomination_type
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make_product


@pytest.fixture
def range_product(make_product):
    return make_product(
        price="5000",
        denomination_type=DenominationType.range,
        min_amount="5000",
        max_amount="50000",
        category=ProductCategory.pln_token
    )


@pytest.fixture
def auth_header():
    def _auth_header(user):
        token = create_access_token({"user_id": user.id, "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _auth_header
