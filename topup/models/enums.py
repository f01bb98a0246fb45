# topup/models/enums.py
import enum


class ProductCategory(enum.Enum):
    mobile_credit = "mobile_credit"
    data_package = "data_package"
    pln_token = "pln_token"
    game_voucher = "game_voucher"
    other = "other"


class DenominationType(enum.Enum):
    fixed = "fixed"
    range = "range"


class TransactionStatus(enum.Enum):
    pending = "pending"
    processing = "processing"
    success = "success"
    failed = "failed"
    cancelled = "cancelled"


class AppRole(enum.Enum):
    user = "user"
    admin = "admin"
