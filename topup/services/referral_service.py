# topup/services/referral_service.py
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import and_, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from topup.models.enums import TransactionStatus
from topup.models.referral import Referral
from topup.models.transaction import Transaction
from topup.models.user import User
from topup.utils.helpers import to_decimal, to_float
from topup.utils.serializers import referral_to_dict

logger = logging.getLogger(__name__)

COMMISSION_RATE = Decimal("0.05")


@dataclass
class CommissionResult:
    outcome: str
    referral: Optional[Referral] = None
    error: Optional[Exception] = None

    CREATED = "created"
    NO_REFERRER = "no_referrer"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"
    FAILED = "failed"

    @property
    def created(self) -> bool:
        return self.outcome == self.CREATED

    @property
    def failed(self) -> bool:
        return self.outcome == self.FAILED


def calculate_commission(price) -> Decimal:
    """5% of the charged price, rounded half up to a whole currency unit."""
    return (to_decimal(price) * COMMISSION_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def settle_commission(db: Session, transaction_pk: int) -> CommissionResult:
    """
    Record the referrer's commission for a successful transaction.

    Never raises. The unique constraint on referrals.transaction_id turns a
    second settlement of the same transaction into a DUPLICATE outcome.
    """
    try:
        row = db.query(Transaction, User).join(User, Transaction.user_id == User.id).filter(
            Transaction.id == transaction_pk
        ).first()
        if not row:
            return CommissionResult(CommissionResult.NOT_FOUND)

        transaction, buyer = row
        if not buyer.referred_by_id:
            return CommissionResult(CommissionResult.NO_REFERRER)

        referral = Referral(
            referrer_id=buyer.referred_by_id,
            referred_id=buyer.id,
            commission_amount=calculate_commission(transaction.price),
            transaction_id=transaction.id,
            is_paid=False
        )
        try:
            with db.begin_nested():
                db.add(referral)
                db.flush()
        except IntegrityError:
            logger.info("Commission for transaction %s already recorded", transaction.transaction_id)
            return CommissionResult(CommissionResult.DUPLICATE)

        db.commit()
        db.refresh(referral)
        logger.info(
            "Commission %s credited to user %s for transaction %s",
            referral.commission_amount, referral.referrer_id, transaction.transaction_id
        )
        return CommissionResult(CommissionResult.CREATED, referral=referral)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Commission settlement failed for transaction pk=%s", transaction_pk)
        return CommissionResult(CommissionResult.FAILED, error=e)


def get_user_referral_earnings(db: Session, user_id: int) -> dict:
    referrals = db.query(Referral).filter(
        Referral.referrer_id == user_id
    ).order_by(Referral.created_at.desc(), Referral.id.desc()).all()

    paid = sum((r.commission_amount for r in referrals if r.is_paid), Decimal("0"))
    pending = sum((r.commission_amount for r in referrals if not r.is_paid), Decimal("0"))

    return {
        "total_earnings": float(paid + pending),
        "pending_earnings": float(pending),
        "paid_earnings": float(paid),
        "total_referrals": len(referrals),
        "referrals": [referral_to_dict(r) for r in referrals]
    }


def get_user_referrals(db: Session, user_id: int) -> dict:
    # Outer join keeps referred users with no successful purchases
    rows = db.query(
        User.id,
        User.full_name,
        User.email,
        User.created_at,
        func.count(Transaction.id),
        func.coalesce(func.sum(Transaction.price), 0)
    ).outerjoin(
        Transaction,
        and_(
            Transaction.user_id == User.id,
            Transaction.status == TransactionStatus.success
        )
    ).filter(
        User.referred_by_id == user_id
    ).group_by(
        User.id, User.full_name, User.email, User.created_at
    ).order_by(User.id).all()

    referred_users = [
        {
            "id": uid,
            "full_name": full_name,
            "email": email,
            "joined_date": joined.isoformat() if joined else None,
            "total_transactions": count,
            "total_spent": to_float(spent)
        }
        for uid, full_name, email, joined, count, spent in rows
    ]
    return {"referred_users": referred_users, "total_referred": len(referred_users)}


def validate_referral_code(db: Session, code: Optional[str]) -> dict:
    if not code or not code.strip():
        return {"valid": False}

    user = db.query(User).filter(User.referral_code == code.strip()).first()
    if not user:
        return {"valid": False}

    return {"valid": True, "referrer_id": user.id, "referrer_name": user.full_name}


def mark_referral_as_paid(db: Session, referral_id: int) -> Optional[Referral]:
    referral = db.query(Referral).filter(Referral.id == referral_id).first()
    if not referral:
        return None

    if not referral.is_paid:
        referral.is_paid = True
        db.commit()
        db.refresh(referral)
        logger.info("Referral %s marked as paid", referral.id)

    return referral
