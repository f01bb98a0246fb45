# topup/services/admin_service.py
from collections import OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from topup.core.exceptions import ValidationError
from topup.models.enums import TransactionStatus
from topup.models.transaction import Transaction
from topup.models.user import User

PERIODS = ("daily", "weekly", "monthly")


def get_admin_stats(db: Session) -> dict:
    total_users = db.query(func.count(User.id)).scalar() or 0
    total_transactions = db.query(func.count(Transaction.id)).scalar() or 0
    total_revenue = db.query(func.coalesce(func.sum(Transaction.price), 0)).filter(
        Transaction.status == TransactionStatus.success
    ).scalar()

    counts = dict(
        db.query(Transaction.status, func.count(Transaction.id)).group_by(Transaction.status).all()
    )

    def tally(*statuses):
        return sum(counts.get(s, 0) for s in statuses)

    return {
        "total_users": total_users,
        "total_transactions": total_transactions,
        "total_revenue": float(total_revenue or 0),
        "pending_transactions": tally(TransactionStatus.pending, TransactionStatus.processing),
        "successful_transactions": tally(TransactionStatus.success),
        "failed_transactions": tally(TransactionStatus.failed, TransactionStatus.cancelled)
    }


def get_all_users(db: Session, page: int = 1, limit: int = 50):
    query = db.query(User)
    total = query.count()
    users = query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return users, total


def _bucket_start(moment: datetime, period: str) -> datetime:
    day = datetime(moment.year, moment.month, moment.day)
    if period == "weekly":
        return day - timedelta(days=day.weekday())
    if period == "monthly":
        return day.replace(day=1)
    return day


def get_revenue_analytics(db: Session, period: str = "daily", days: int = 30, now: datetime = None) -> dict:
    """Successful revenue over the trailing `days`, bucketed by day, ISO week or month."""
    if period not in PERIODS:
        raise ValidationError(f"Period must be one of: {', '.join(PERIODS)}")
    if days < 1:
        raise ValidationError("Days must be at least 1")

    end = now or datetime.utcnow()
    start = end - timedelta(days=days)

    rows = db.query(Transaction.created_at, Transaction.price).filter(
        Transaction.status == TransactionStatus.success,
        Transaction.created_at >= start,
        Transaction.created_at <= end
    ).order_by(Transaction.created_at.asc()).all()

    buckets = OrderedDict()
    for created_at, price in rows:
        key = _bucket_start(created_at, period)
        revenue, count = buckets.get(key, (Decimal("0"), 0))
        buckets[key] = (revenue + price, count + 1)

    revenue_data = [
        {"date": key.strftime("%Y-%m-%d"), "revenue": float(revenue), "transaction_count": count}
        for key, (revenue, count) in sorted(buckets.items())
    ]
    return {
        "revenue_data": revenue_data,
        "total_revenue": sum(row["revenue"] for row in revenue_data),
        "total_transactions": sum(row["transaction_count"] for row in revenue_data)
    }
