from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.helper import as_utc, page_count, utc_now
from models.Purchase import Purchase, PurchaseStatus
from models.Ticket import Ticket
from models.User import User


def create_purchase(
    db: Session,
    ticket_id,
    buyer_id,
    amount: int,
    transaction_id: Optional[str] = None,
    is_commit: bool = True,
) -> Purchase:
    now = utc_now()
    purchase = Purchase(
        ticket_id=ticket_id,
        buyer_id=buyer_id,
        amount=amount,
        status=PurchaseStatus.COMPLETED,
        transaction_id=transaction_id,
        created_at=now,
        updated_at=now,
    )
    db.add(purchase)
    if is_commit:
        db.commit()
    else:
        db.flush()
    return purchase


def get_latest_purchase(
    db: Session, ticket: Ticket, buyer: User
) -> Optional[Purchase]:
    stmt = (
        select(Purchase)
        .where(Purchase.ticket_id == ticket.id, Purchase.buyer_id == buyer.id)
        .order_by(Purchase.created_at.desc())
        .limit(1)
    )
    return db.execute(stmt).scalar()


def get_purchases_by_ticket(db: Session, ticket: Ticket) -> Sequence[Purchase]:
    stmt = (
        select(Purchase)
        .where(Purchase.ticket_id == ticket.id)
        .order_by(Purchase.created_at.asc())
    )
    return db.execute(stmt).scalars().all()


def get_purchases_per_page(
    db: Session, page: int = 1, page_size: int = 20, status: Optional[str] = None
) -> dict:
    stmt = select(Purchase)
    if status:
        stmt = stmt.where(Purchase.status == status)

    count = db.execute(select(func.count()).select_from(stmt.subquery())).scalar()
    stmt = (
        stmt.order_by(Purchase.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    results = db.execute(stmt).scalars().all()
    return {
        "page": page,
        "page_size": page_size,
        "count": count,
        "page_count": page_count(count, page_size),
        "results": results,
    }


def get_recent_purchases(db: Session, limit: int = 10) -> Sequence[Purchase]:
    stmt = select(Purchase).order_by(Purchase.created_at.desc()).limit(limit)
    return db.execute(stmt).scalars().all()


def get_total_revenue(db: Session, since: Optional[datetime] = None) -> int:
    stmt = select(func.coalesce(func.sum(Purchase.amount), 0)).where(
        Purchase.status == PurchaseStatus.COMPLETED
    )
    if since is not None:
        stmt = stmt.where(Purchase.created_at >= since)
    return db.execute(stmt).scalar()


def count_purchases(db: Session, since: Optional[datetime] = None) -> int:
    stmt = select(func.count(Purchase.id)).where(
        Purchase.status == PurchaseStatus.COMPLETED
    )
    if since is not None:
        stmt = stmt.where(Purchase.created_at >= since)
    return db.execute(stmt).scalar()


def get_revenue_by_day(db: Session, since: datetime) -> list[dict]:
    """Completed revenue per UTC calendar day, oldest first."""
    stmt = (
        select(Purchase.created_at, Purchase.amount)
        .where(
            Purchase.status == PurchaseStatus.COMPLETED,
            Purchase.created_at >= since,
        )
        .order_by(Purchase.created_at.asc())
    )
    per_day: dict[str, dict] = {}
    for created_at, amount in db.execute(stmt).all():
        day = as_utc(created_at).date().isoformat()
        entry = per_day.setdefault(day, {"date": day, "revenue": 0, "transactions": 0})
        entry["revenue"] += amount
        entry["transactions"] += 1
    return list(per_day.values())
