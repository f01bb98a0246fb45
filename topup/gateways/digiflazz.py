# topup/gateways/digiflazz.py
import enum
import hashlib
import logging
import random
from typing import List, Optional

import requests
from pydantic import ValidationError as SchemaError

from topup.core.config import ProviderSettings
from topup.core.exceptions import UpstreamError
from topup.models.enums import ProductCategory
from topup.schemas.digiflazz import (
    DigiflazzOrderData,
    DigiflazzService,
    OrderResponse,
    PriceListResponse,
    StatusResponse,
)

logger = logging.getLogger(__name__)

SUCCESS_STATUS = "Sukses"
FAILED_STATUS = "Gagal"
PENDING_STATUSES = ("Pending", "Process")
SUCCESS_RC = "00"
PENDING_MESSAGE = "PROCESS"
FAILED_MESSAGE = "GAGAL"
PRICELIST_REF = "pricelist"


class ProviderOutcome(enum.Enum):
    success = "success"
    pending = "pending"
    failed = "failed"


def generate_signature(username: str, api_key: str, ref_id: str) -> str:
    """MD5 of username + key + ref, 32 lowercase hex chars."""
    return hashlib.md5(f"{username}{api_key}{ref_id}".encode()).hexdigest()


def is_success(data: DigiflazzOrderData) -> bool:
    return data.status == SUCCESS_STATUS and data.rc == SUCCESS_RC


def is_pending(data: DigiflazzOrderData) -> bool:
    return data.status in PENDING_STATUSES or data.message == PENDING_MESSAGE


def is_failed(data: DigiflazzOrderData) -> bool:
    return (
        data.status == FAILED_STATUS
        or data.message == FAILED_MESSAGE
        or (data.rc != SUCCESS_RC and data.status not in PENDING_STATUSES)
    )


def classify(data: DigiflazzOrderData) -> ProviderOutcome:
    if is_success(data):
        return ProviderOutcome.success
    if is_failed(data):
        return ProviderOutcome.failed
    if is_pending(data):
        return ProviderOutcome.pending
    return ProviderOutcome.failed


def map_category(category: str, brand: str) -> ProductCategory:
    category = category.lower()
    brand = brand.lower()

    if "pulsa" in category or "credit" in category:
        return ProductCategory.mobile_credit
    if "data" in category or "internet" in category:
        return ProductCategory.data_package
    if "pln" in category or "pln" in brand:
        return ProductCategory.pln_token
    if "game" in category or "voucher" in category:
        return ProductCategory.game_voucher
    return ProductCategory.other


class ProviderGateway:
    """Interface the services talk to; real and mock providers both implement it."""

    def __init__(self, settings: ProviderSettings):
        self.settings = settings

    def sign(self, ref_id: str) -> str:
        return generate_signature(self.settings.username, self.settings.api_key, ref_id)

    def get_services(self) -> List[DigiflazzService]:
        raise NotImplementedError

    def create_order(self, sku: str, customer_no: str, ref_id: str) -> OrderResponse:
        raise NotImplementedError

    def check_status(self, ref_id: str, sku: str, customer_no: str) -> StatusResponse:
        raise NotImplementedError


class DigiflazzGateway(ProviderGateway):

    def __init__(self, settings: ProviderSettings, session: Optional[requests.Session] = None):
        super().__init__(settings)
        self.session = session or requests.Session()

    def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.settings.base_url}{path}"
        try:
            response = self.session.post(url, json=payload, timeout=self.settings.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            logger.error("Digiflazz %s timed out after %ss", path, self.settings.timeout)
            raise UpstreamError(f"Digiflazz {path} timed out", timed_out=True)
        except requests.exceptions.JSONDecodeError:
            logger.error("Digiflazz %s returned a non-JSON body", path)
            raise UpstreamError(f"Digiflazz {path} returned a non-JSON body")
        except requests.exceptions.HTTPError as e:
            logger.error("Digiflazz %s returned %s", path, e.response.status_code)
            raise UpstreamError(
                f"Digiflazz API error: {e.response.status_code}",
                details={"status_code": e.response.status_code}
            )
        except requests.exceptions.RequestException as e:
            logger.error("Digiflazz %s request failed: %s", path, e)
            raise UpstreamError(f"Digiflazz request failed: {e}")

    @staticmethod
    def _parse(model, body: dict):
        try:
            return model.model_validate(body)
        except SchemaError as e:
            raise UpstreamError(
                "Unexpected Digiflazz response shape",
                details=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
            )

    def get_services(self) -> List[DigiflazzService]:
        body = self._post("/price-list", {
            "cmd": "prepaid",
            "username": self.settings.username,
            "sign": self.sign(PRICELIST_REF)
        })
        price_list = self._parse(PriceListResponse, body)
        return [
            service for service in price_list.data
            if service.buyer_product_status and service.seller_product_status
            and (service.unlimited_stock or service.stock > 0)
        ]

    def create_order(self, sku: str, customer_no: str, ref_id: str) -> OrderResponse:
        body = self._post("/transaction", {
            "username": self.settings.username,
            "buyer_sku_code": sku,
            "customer_no": customer_no,
            "ref_id": ref_id,
            "sign": self.sign(ref_id)
        })
        return self._parse(OrderResponse, body)

    def check_status(self, ref_id: str, sku: str, customer_no: str) -> StatusResponse:
        # Digiflazz answers a repeated ref_id with the existing order's status
        body = self._post("/transaction", {
            "username": self.settings.username,
            "buyer_sku_code": sku,
            "customer_no": customer_no,
            "ref_id": ref_id,
            "sign": self.sign(ref_id)
        })
        return self._parse(StatusResponse, body)


MOCK_SERVICES = [
    DigiflazzService(
        buyer_sku_code="TELKOMSEL_5000",
        product_name="Telkomsel 5.000",
        category="Pulsa",
        brand="TELKOMSEL",
        type="Pulsa",
        seller_name="DIGIFLAZZ",
        price=5275,
        buyer_product_status=True,
        seller_product_status=True,
        unlimited_stock=True,
        stock=999999,
        desc="Pulsa Telkomsel 5.000"
    ),
    DigiflazzService(
        buyer_sku_code="XL_10000",
        product_name="XL 10.000",
        category="Pulsa",
        brand="XL",
        type="Pulsa",
        seller_name="DIGIFLAZZ",
        price=10250,
        buyer_product_status=True,
        seller_product_status=True,
        unlimited_stock=True,
        stock=999999,
        desc="Pulsa XL 10.000"
    ),
    DigiflazzService(
        buyer_sku_code="PLN_20000",
        product_name="PLN Token 20.000",
        category="PLN",
        brand="PLN",
        type="PLN",
        seller_name="DIGIFLAZZ",
        price=20500,
        buyer_product_status=True,
        seller_product_status=True,
        unlimited_stock=True,
        stock=999999,
        desc="Token PLN 20.000"
    ),
]

_MOCK_REPLIES = {
    ProviderOutcome.success: (SUCCESS_STATUS, "SUKSES", SUCCESS_RC),
    ProviderOutcome.pending: ("Pending", PENDING_MESSAGE, "03"),
    ProviderOutcome.failed: (FAILED_STATUS, FAILED_MESSAGE, "01"),
}


class MockDigiflazzGateway(ProviderGateway):
    """
    Offline stand-in for Digiflazz. Pass `outcome` to force every reply,
    otherwise outcomes are drawn from a seeded RNG.
    """

    def __init__(self, settings: ProviderSettings, outcome: Optional[ProviderOutcome] = None,
                 seed: Optional[int] = None, services: Optional[List[DigiflazzService]] = None):
        super().__init__(settings)
        self.outcome = ProviderOutcome(outcome) if outcome is not None else None
        self.rng = random.Random(seed)
        self.services = list(MOCK_SERVICES if services is None else services)
        self.calls = []

    def _reply(self, outcome: ProviderOutcome, ref_id: str, sku: str, customer_no: str) -> dict:
        status, message, rc = _MOCK_REPLIES[outcome]
        return {
            "data": {
                "ref_id": ref_id,
                "customer_no": customer_no,
                "buyer_sku_code": sku,
                "message": message,
                "status": status,
                "rc": rc,
                "buyer_last_saldo": 1000000,
                "price": 5275,
                "tele": "62895000000",
                "wa": "62895000000",
                "sn": "SN123456789" if outcome == ProviderOutcome.success else ""
            }
        }

    def get_services(self) -> List[DigiflazzService]:
        self.calls.append(("get_services",))
        return [s for s in self.services if s.buyer_product_status and s.seller_product_status]

    def create_order(self, sku: str, customer_no: str, ref_id: str) -> OrderResponse:
        self.calls.append(("create_order", sku, customer_no, ref_id))
        outcome = self.outcome
        if outcome is None:
            outcome = ProviderOutcome.success if self.rng.random() > 0.3 else ProviderOutcome.pending
        return OrderResponse.model_validate(self._reply(outcome, ref_id, sku, customer_no))

    def check_status(self, ref_id: str, sku: str, customer_no: str) -> StatusResponse:
        self.calls.append(("check_status", ref_id, sku, customer_no))
        outcome = self.outcome or self.rng.choice(list(ProviderOutcome))
        return StatusResponse.model_validate(self._reply(outcome, ref_id, sku, customer_no))


def get_gateway(settings: ProviderSettings) -> ProviderGateway:
    if settings.use_mock:
        logger.info("Using mock Digiflazz gateway")
        return MockDigiflazzGateway(settings)
    return DigiflazzGateway(settings)
