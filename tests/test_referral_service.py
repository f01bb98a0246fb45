from decimal import Decimal

import pytest

from topup.models.enums import TransactionStatus
from topup.services import referral_service, transaction_service
from topup.services.referral_service import CommissionResult


def _buy(db, user, product, status=TransactionStatus.success):
    transaction = transaction_service.create_transaction(db, user.id, product.id)
    transaction_service.update_transaction_status(db, transaction.transaction_id, status)
    return transaction


@pytest.mark.parametrize("price,expected", [
    ("10000", "500"),
    ("5275", "264"),
    ("10250", "513"),
    ("5500", "275"),
    ("10", "1"),
    ("9", "0"),
])
def test_calculate_commission(price, expected):
    assert referral_service.calculate_commission(price) == Decimal(expected)


def test_settle_commission_unknown_transaction(db):
    result = referral_service.settle_commission(db, 4242)

    assert result.outcome == CommissionResult.NOT_FOUND
    assert not result.created


def test_commission_is_based_on_price_not_amount(db, make_user, range_product):
    referrer = make_user()
    buyer = make_user(referred_by=referrer)
    transaction = transaction_service.create_transaction(db, buyer.id, range_product.id, amount=40000)

    update = transaction_service.update_transaction_status(db, transaction.transaction_id, TransactionStatus.success)

    assert float(update.commission.referral.commission_amount) == 250


def test_earnings_split_paid_and_pending(db, make_user, make_product):
    referrer = make_user()
    buyer = make_user(referred_by=referrer)
    product = make_product(price="10000")
    _buy(db, buyer, product)
    _buy(db, buyer, product)
    _buy(db, buyer, product, status=TransactionStatus.failed)

    first = referral_service.get_user_referral_earnings(db, referrer.id)["referrals"][-1]
    referral_service.mark_referral_as_paid(db, first["id"])

    earnings = referral_service.get_user_referral_earnings(db, referrer.id)
    assert earnings["total_earnings"] == 1000
    assert earnings["paid_earnings"] == 500
    assert earnings["pending_earnings"] == 500
    assert earnings["total_referrals"] == 2
    assert {r["is_paid"] for r in earnings["referrals"]} == {True, False}


def test_earnings_for_user_without_referrals(db, make_user):
    earnings = referral_service.get_user_referral_earnings(db, make_user().id)

    assert earnings == {
        "total_earnings": 0.0,
        "pending_earnings": 0.0,
        "paid_earnings": 0.0,
        "total_referrals": 0,
        "referrals": []
    }


def test_referred_users_count_only_successful_purchases(db, make_user, make_product):
    referrer = make_user()
    active = make_user(referred_by=referrer)
    idle = make_user(referred_by=referrer)
    make_user()  # not referred
    _buy(db, active, make_product(price="10000"))
    _buy(db, active, make_product(price="5500"))
    _buy(db, active, make_product(price="20000"), status=TransactionStatus.failed)
    _buy(db, idle, make_product(price="7000"), status=TransactionStatus.processing)

    result = referral_service.get_user_referrals(db, referrer.id)

    assert result["total_referred"] == 2
    by_id = {row["id"]: row for row in result["referred_users"]}
    assert by_id[active.id]["total_transactions"] == 2
    assert by_id[active.id]["total_spent"] == 15500
    assert by_id[idle.id]["total_transactions"] == 0
    assert by_id[idle.id]["total_spent"] == 0
    assert by_id[idle.id]["email"] == idle.email
    assert by_id[idle.id]["joined_date"] is not None


def test_validate_referral_code(db, make_user):
    referrer = make_user(full_name="Siti Rahma")

    assert referral_service.validate_referral_code(db, referrer.referral_code) == {
        "valid": True,
        "referrer_id": referrer.id,
        "referrer_name": "Siti Rahma"
    }
    assert referral_service.validate_referral_code(db, "REFNOPE1") == {"valid": False}
    assert referral_service.validate_referral_code(db, "") == {"valid": False}
    assert referral_service.validate_referral_code(db, None) == {"valid": False}


def test_mark_referral_as_paid_is_idempotent(db, make_user, make_product):
    referrer = make_user()
    buyer = make_user(referred_by=referrer)
    _buy(db, buyer, make_product())
    referral_id = referral_service.get_user_referral_earnings(db, referrer.id)["referrals"][0]["id"]

    first = referral_service.mark_referral_as_paid(db, referral_id)
    second = referral_service.mark_referral_as_paid(db, referral_id)

    assert first.is_paid is True
    assert second.is_paid is True
    assert referral_service.get_user_referral_earnings(db, referrer.id)["paid_earnings"] == 275


def test_mark_unknown_referral_returns_none(db):
    assert referral_service.mark_referral_as_paid(db, 999) is None
