# topup/schemas/digiflazz.py
"""Response shapes of the Digiflazz API, validated before they reach the services."""
from typing import List, Literal, Optional

from pydantic import BaseModel


class DigiflazzService(BaseModel):
    buyer_sku_code: str
    product_name: str
    category: str
    brand: str
    type: str = ""
    seller_name: str
    price: float
    buyer_product_status: bool
    seller_product_status: bool
    unlimited_stock: bool = False
    stock: int = 0
    multi: bool = False
    start_cut_off: str = "00:00"
    end_cut_off: str = "23:59"
    desc: str = ""


class PriceListResponse(BaseModel):
    kind: Literal["price_list"] = "price_list"
    data: List[DigiflazzService]


class DigiflazzOrderData(BaseModel):
    ref_id: str
    customer_no: str
    buyer_sku_code: str
    message: str
    status: str
    rc: str
    buyer_last_saldo: float = 0
    price: float = 0
    tele: str = ""
    wa: str = ""
    sn: Optional[str] = None


class OrderResponse(BaseModel):
    kind: Literal["order"] = "order"
    data: DigiflazzOrderData


class StatusResponse(BaseModel):
    kind: Literal["status"] = "status"
    data: DigiflazzOrderData
