from typing import Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from core.helper import utc_now
from models.Bid import Bid, BidStatus
from models.Purchase import Purchase
from models.Ticket import Ticket
from models.User import User
from repository import purchase as purchaseRepo
from repository import ticket as ticketRepo


def get_bid_by_id(db: Session, id: str) -> Optional[Bid]:
    stmt = select(Bid).where(Bid.id == id)
    return db.execute(stmt).scalar()


def get_bids_by_ticket(
    db: Session, ticket: Ticket, limit: Optional[int] = None
) -> Sequence[Bid]:
    stmt = (
        select(Bid)
        .where(Bid.ticket_id == ticket.id)
        .order_by(Bid.amount.desc(), Bid.created_at.asc())
    )
    if limit:
        stmt = stmt.limit(limit)
    return db.execute(stmt).scalars().all()


def get_bids_by_bidder(db: Session, user: User) -> Sequence[Bid]:
    stmt = (
        select(Bid).where(Bid.bidder_id == user.id).order_by(Bid.created_at.desc())
    )
    return db.execute(stmt).scalars().all()


def get_highest_bid(db: Session, ticket: Ticket) -> Optional[Bid]:
    """Highest bid on ``ticket`` whatever its status, rejected ones included."""
    stmt = (
        select(Bid)
        .where(Bid.ticket_id == ticket.id)
        .order_by(Bid.amount.desc(), Bid.created_at.asc())
        .limit(1)
    )
    return db.execute(stmt).scalar()


def get_highest_pending_bid(db: Session, ticket: Ticket) -> Optional[Bid]:
    stmt = (
        select(Bid)
        .where(Bid.ticket_id == ticket.id, Bid.status == BidStatus.PENDING)
        .order_by(Bid.amount.desc(), Bid.created_at.asc())
        .limit(1)
    )
    return db.execute(stmt).scalar()


def get_pending_bid_by_bidder(
    db: Session, ticket: Ticket, user: User
) -> Optional[Bid]:
    stmt = select(Bid).where(
        Bid.ticket_id == ticket.id,
        Bid.bidder_id == user.id,
        Bid.status == BidStatus.PENDING,
    )
    return db.execute(stmt).scalar()


def count_pending_bids(db: Session, ticket: Ticket) -> int:
    stmt = select(func.count(Bid.id)).where(
        Bid.ticket_id == ticket.id, Bid.status == BidStatus.PENDING
    )
    return db.execute(stmt).scalar()


def summarize_bids(db: Session, ticket_ids: Sequence) -> dict:
    """Map of ticket id to ``(pending bid count, highest pending amount)``."""
    if not ticket_ids:
        return {}
    stmt = (
        select(Bid.ticket_id, func.count(Bid.id), func.max(Bid.amount))
        .where(Bid.ticket_id.in_(ticket_ids), Bid.status == BidStatus.PENDING)
        .group_by(Bid.ticket_id)
    )
    return {
        ticket_id: (total, highest)
        for ticket_id, total, highest in db.execute(stmt).all()
    }


def create_bid(
    db: Session, ticket: Ticket, bidder: User, amount: int, is_commit: bool = True
) -> Bid:
    now = utc_now()
    bid = Bid(
        ticket_id=ticket.id,
        bidder_id=bidder.id,
        amount=amount,
        status=BidStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    db.add(bid)
    if is_commit:
        db.commit()
    return bid


def raise_bid(db: Session, bid: Bid, amount: int, is_commit: bool = True) -> Bid:
    bid.amount = amount
    bid.updated_at = utc_now()
    db.add(bid)
    if is_commit:
        db.commit()
    return bid


def set_bid_status(
    db: Session, bid: Bid, status: str, is_commit: bool = True
) -> Bid:
    bid.status = status
    bid.updated_at = utc_now()
    db.add(bid)
    if is_commit:
        db.commit()
    return bid


def reject_other_pending_bids(db: Session, ticket: Ticket, accepted: Bid) -> int:
    stmt = (
        update(Bid)
        .where(
            Bid.ticket_id == ticket.id,
            Bid.status == BidStatus.PENDING,
            Bid.id != accepted.id,
        )
        .values(status=BidStatus.REJECTED, updated_at=utc_now())
        .execution_options(synchronize_session="fetch")
    )
    return db.execute(stmt).rowcount


def delete_bids_by_ticket(db: Session, ticket: Ticket) -> None:
    db.execute(
        delete(Bid)
        .where(Bid.ticket_id == ticket.id)
        .execution_options(synchronize_session="fetch")
    )


def accept_bid(db: Session, ticket: Ticket, bid: Bid) -> Optional[Purchase]:
    """Sell ``ticket`` to the bidder of ``bid`` in a single transaction.

    The ticket moves to SOLD, the bid to ACCEPTED, every other pending bid is
    rejected and a completed purchase for the bid amount is recorded. Returns
    None, with nothing written, when the ticket was sold or changed meanwhile.
    """
    amount = bid.amount
    bidder_id = bid.bidder_id
    if not ticketRepo.sell_ticket(db=db, ticket=ticket, buyer_id=bidder_id):
        db.rollback()
        return None

    set_bid_status(db=db, bid=bid, status=BidStatus.ACCEPTED, is_commit=False)
    reject_other_pending_bids(db=db, ticket=ticket, accepted=bid)
    purchase = purchaseRepo.create_purchase(
        db=db,
        ticket_id=ticket.id,
        buyer_id=bidder_id,
        amount=amount,
        transaction_id=None,
        is_commit=False,
    )
    db.commit()
    return purchase
