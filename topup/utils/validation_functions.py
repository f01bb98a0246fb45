# topup/utils/validation_functions.py
import re

from topup.core.config import MIN_PASSWORD_LENGTH
from topup.models.enums import ProductCategory, TransactionStatus


def validate_email(email: str) -> bool:
    pattern = r'^[\w\.\+-]+@[\w\.-]+\.\w+$'
    return re.match(pattern, email) is not None


def validate_password_strength(password: str) -> bool:
    """Passwords need at least MIN_PASSWORD_LENGTH characters."""
    return password is not None and len(password) >= MIN_PASSWORD_LENGTH


def validate_indonesian_phone(phone: str) -> str:
    """
    Normalizes an Indonesian mobile number into local format.
    Accepts:
        - 081234567890
        - 6281234567890
        - +6281234567890
    Returns formatted number like: 081234567890
    Raises ValueError if invalid.
    """
    phone = phone.strip().replace(" ", "").replace("-", "")

    if phone.startswith("+"):
        phone = phone[1:]

    if phone.startswith("62"):
        phone = "0" + phone[2:]

    if re.fullmatch(r"08\d{8,11}", phone):
        return phone

    raise ValueError("Invalid phone number. Expected an Indonesian mobile number starting with 08 or 62")


def parse_category(value: str) -> ProductCategory:
    try:
        return ProductCategory(value)
    except ValueError:
        raise ValueError(f"Unknown product category: {value}")


def parse_status(value: str) -> TransactionStatus:
    try:
        return TransactionStatus(value)
    except ValueError:
        raise ValueError(f"Unknown transaction status: {value}")
