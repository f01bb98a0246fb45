# topup/utils/serializers.py
from topup.utils.helpers import to_float


def _iso(value):
    return value.isoformat() if value else None


def user_to_dict(user):
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "phone_number": user.phone_number,
        "referral_code": user.referral_code,
        "referred_by_id": user.referred_by_id,
        "role": user.role.value,
        "created_at": _iso(user.created_at),
        "updated_at": _iso(user.updated_at)
    }


def product_to_dict(product):
    return {
        "id": product.id,
        "sku": product.sku,
        "name": product.name,
        "description": product.description,
        "category": product.category.value,
        "price": to_float(product.price),
        "base_price": to_float(product.base_price),
        "provider": product.provider,
        "is_active": product.is_active,
        "min_amount": to_float(product.min_amount),
        "max_amount": to_float(product.max_amount),
        "denomination_type": product.denomination_type.value,
        "image_url": product.image_url,
        "created_at": _iso(product.created_at),
        "updated_at": _iso(product.updated_at)
    }


def transaction_to_dict(transaction):
    return {
        "id": transaction.id,
        "user_id": transaction.user_id,
        "product_id": transaction.product_id,
        "transaction_id": transaction.transaction_id,
        "external_transaction_id": transaction.external_transaction_id,
        "amount": to_float(transaction.amount),
        "price": to_float(transaction.price),
        "status": transaction.status.value,
        "customer_phone": transaction.customer_phone,
        "customer_id": transaction.customer_id,
        "customer_name": transaction.customer_name,
        "notes": transaction.notes,
        "provider_response": transaction.provider_response,
        "created_at": _iso(transaction.created_at),
        "updated_at": _iso(transaction.updated_at)
    }


def referral_to_dict(referral):
    return {
        "id": referral.id,
        "referrer_id": referral.referrer_id,
        "referred_id": referral.referred_id,
        "commission_amount": to_float(referral.commission_amount),
        "transaction_id": referral.transaction_id,
        "is_paid": referral.is_paid,
        "created_at": _iso(referral.created_at)
    }
