# topup/services/transaction_service.py
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from topup.core.exceptions import (
    ConflictError,
    InternalError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from topup.gateways.digiflazz import ProviderGateway, ProviderOutcome, classify
from topup.models.enums import DenominationType, TransactionStatus
from topup.models.product import Product
from topup.models.transaction import Transaction
from topup.models.user import User
from topup.schemas.digiflazz import StatusResponse
from topup.services.referral_service import CommissionResult, settle_commission
from topup.utils.helpers import generate_transaction_id, to_decimal

logger = logging.getLogger(__name__)

OUTCOME_TO_STATUS = {
    ProviderOutcome.success: TransactionStatus.success,
    ProviderOutcome.pending: TransactionStatus.processing,
    ProviderOutcome.failed: TransactionStatus.failed,
}


@dataclass
class Page:
    items: List[Transaction]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit


@dataclass
class StatusUpdate:
    transaction: Transaction
    commission: Optional[CommissionResult] = None


# Largest value a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")
CENT = Decimal("0.01")


def _format_amount(value: Decimal) -> str:
    return f"{value.normalize():f}"


def resolve_amount(product: Product, amount=None) -> Decimal:
    """
    Purchase amount for a product: defaults to the product price, and must
    fall within [min_amount, max_amount] for range-denominated products.
    Amounts carry at most two decimal places.
    """
    resolved = to_decimal(product.price) if amount is None else to_decimal(amount)
    if not resolved.is_finite():
        raise ValidationError("Amount must be a finite number")
    if resolved <= 0:
        raise ValidationError("Amount must be greater than 0", details={"amount": float(resolved)})
    if resolved > MAX_AMOUNT:
        raise ValidationError(
            f"Amount must not exceed {_format_amount(MAX_AMOUNT)}",
            details={"bound": "max_amount", "max_amount": float(MAX_AMOUNT)}
        )
    if resolved != resolved.quantize(CENT):
        raise ValidationError("Amount must have at most 2 decimal places", details={"amount": str(resolved)})

    if product.denomination_type == DenominationType.range:
        if product.min_amount is not None and resolved < product.min_amount:
            raise ValidationError(
                f"Amount must be at least {_format_amount(product.min_amount)}",
                details={"bound": "min_amount", "min_amount": float(product.min_amount)}
            )
        if product.max_amount is not None and resolved > product.max_amount:
            raise ValidationError(
                f"Amount must not exceed {_format_amount(product.max_amount)}",
                details={"bound": "max_amount", "max_amount": float(product.max_amount)}
            )
    return resolved


def create_transaction(
    db: Session,
    user_id: int,
    product_id: int,
    amount=None,
    customer_phone: Optional[str] = None,
    customer_id: Optional[str] = None,
    customer_name: Optional[str] = None,
    notes: Optional[str] = None
) -> Transaction:
    if not db.query(User.id).filter(User.id == user_id).first():
        raise NotFoundError("User")

    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product")
    if not product.is_active:
        raise InvalidStateError("Product is not active", details={"product_id": product.id})

    resolved_amount = resolve_amount(product, amount)

    now = datetime.utcnow()
    transaction = Transaction(
        user_id=user_id,
        product_id=product.id,
        transaction_id=generate_transaction_id(),
        amount=resolved_amount,
        price=product.price,
        status=TransactionStatus.pending,
        customer_phone=customer_phone or None,
        customer_id=customer_id or None,
        customer_name=customer_name or None,
        notes=notes or None,
        created_at=now,
        updated_at=now
    )
    db.add(transaction)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Transaction id collision, please retry")
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to persist transaction for user %s", user_id)
        raise InternalError("Could not create transaction")

    db.refresh(transaction)
    logger.info(
        "Transaction %s created: user=%s product=%s amount=%s",
        transaction.transaction_id, user_id, product.sku, resolved_amount
    )
    return transaction


def update_transaction_status(
    db: Session,
    transaction_id: str,
    status: TransactionStatus,
    external_transaction_id: Optional[str] = None,
    provider_response: Optional[dict] = None
) -> Optional[StatusUpdate]:
    """
    Apply a provider status update keyed by the public transaction_id.

    Unknown ids return None. A move to success settles the referral
    commission afterwards; that result is logged and returned, never raised.
    """
    status = TransactionStatus(status)
    transaction = db.query(Transaction).filter(Transaction.transaction_id == transaction_id).first()
    if not transaction:
        logger.warning("Status update for unknown transaction %s", transaction_id)
        return None

    previous = transaction.status
    transaction.status = status
    if external_transaction_id:
        transaction.external_transaction_id = external_transaction_id
    if provider_response is not None:
        transaction.provider_response = provider_response
    transaction.updated_at = datetime.utcnow()
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update status of transaction %s", transaction_id)
        raise InternalError("Could not update transaction status")
    db.refresh(transaction)
    logger.info("Transaction %s: %s -> %s", transaction_id, previous.value, status.value)

    result = StatusUpdate(transaction=transaction)
    if status == TransactionStatus.success:
        result.commission = settle_commission(db, transaction.id)
        if result.commission.failed:
            logger.error(
                "Commission for transaction %s not recorded: %s",
                transaction_id, result.commission.error
            )
        db.refresh(transaction)
    return result


def _apply_provider_outcome(db: Session, transaction: Transaction, reply) -> StatusUpdate:
    outcome = classify(reply.data)
    return update_transaction_status(
        db,
        transaction.transaction_id,
        OUTCOME_TO_STATUS[outcome],
        external_transaction_id=reply.data.sn,
        provider_response=reply.model_dump(mode="json")
    )


def get_transaction_by_public_id(db: Session, transaction_id: str) -> Optional[Transaction]:
    return db.query(Transaction).filter(Transaction.transaction_id == transaction_id).first()


def _get_by_public_id(db: Session, transaction_id: str) -> Transaction:
    transaction = get_transaction_by_public_id(db, transaction_id)
    if not transaction:
        raise NotFoundError("Transaction")
    return transaction


def _customer_number(transaction: Transaction) -> Optional[str]:
    return transaction.customer_id or transaction.customer_phone


def submit_transaction(db: Session, gateway: ProviderGateway, transaction_id: str) -> StatusUpdate:
    """Place a pending transaction's order with the provider."""
    transaction = _get_by_public_id(db, transaction_id)
    if transaction.status != TransactionStatus.pending:
        raise InvalidStateError(
            f"Transaction is already {transaction.status.value}",
            details={"status": transaction.status.value}
        )

    customer_no = _customer_number(transaction)
    if not customer_no:
        raise ValidationError("Transaction has no customer number to top up")

    reply = gateway.create_order(transaction.product.sku, customer_no, transaction.transaction_id)
    return _apply_provider_outcome(db, transaction, reply)


def _query_placed_order(gateway: ProviderGateway, transaction: Transaction) -> StatusResponse:
    # Digiflazz answers an unseen ref_id on /transaction by placing a new order
    if transaction.status == TransactionStatus.pending:
        raise InvalidStateError(
            "Transaction has not been submitted to the provider",
            details={"status": transaction.status.value}
        )
    return gateway.check_status(
        transaction.transaction_id,
        transaction.product.sku,
        _customer_number(transaction) or ""
    )


def get_provider_status(db: Session, gateway: ProviderGateway, transaction_id: str) -> StatusResponse:
    """Provider's view of a submitted order; the local row is left untouched."""
    return _query_placed_order(gateway, _get_by_public_id(db, transaction_id))


def refresh_transaction_status(db: Session, gateway: ProviderGateway, transaction_id: str) -> StatusUpdate:
    """Poll the provider for a placed order that has not reached a final state."""
    transaction = _get_by_public_id(db, transaction_id)
    if transaction.status not in (TransactionStatus.pending, TransactionStatus.processing):
        raise InvalidStateError(
            f"Transaction is already {transaction.status.value}",
            details={"status": transaction.status.value}
        )

    reply = _query_placed_order(gateway, transaction)
    return _apply_provider_outcome(db, transaction, reply)


def _paginate(query, page: int, limit: int) -> Page:
    total = query.count()
    items = query.order_by(
        Transaction.created_at.desc(), Transaction.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()
    return Page(items=items, total=total, page=page, limit=limit)


def get_transactions(
    db: Session,
    user_id: Optional[int] = None,
    status: Optional[TransactionStatus] = None,
    page: int = 1,
    limit: int = 20
) -> Page:
    query = db.query(Transaction)
    if user_id is not None:
        query = query.filter(Transaction.user_id == user_id)
    if status is not None:
        query = query.filter(Transaction.status == TransactionStatus(status))
    return _paginate(query, page, limit)


def get_transaction_by_id(db: Session, id: int) -> Optional[Transaction]:
    return db.query(Transaction).filter(Transaction.id == id).first()


def get_user_transactions(db: Session, user_id: int, page: int = 1, limit: int = 20) -> Page:
    return _paginate(db.query(Transaction).filter(Transaction.user_id == user_id), page, limit)
