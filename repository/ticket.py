from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from core.helper import as_utc, page_count, utc_now
from models.Bid import Bid
from models.Event import Event
from models.Purchase import Purchase
from models.Ticket import ListingType, Ticket, TicketStatus
from models.User import User


def get_ticket_by_id(db: Session, id: str) -> Optional[Ticket]:
    stmt = select(Ticket).where(Ticket.id == id)
    return db.execute(stmt).scalar()


def _paginate(db: Session, stmt, page: int, page_size: int) -> dict:
    count = db.execute(select(func.count()).select_from(stmt.subquery())).scalar()
    stmt = stmt.offset((page - 1) * page_size).limit(page_size)
    results = db.execute(stmt).scalars().all()
    return {
        "page": page,
        "page_size": page_size,
        "count": count,
        "page_count": page_count(count, page_size),
        "results": results,
    }


def get_available_tickets_per_page(
    db: Session,
    page: int = 1,
    page_size: int = 12,
    event_id: Optional[str] = None,
    listing_type: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    search: Optional[str] = None,
) -> dict:
    stmt = (
        select(Ticket)
        .join(Event, Ticket.event_id == Event.id)
        .where(Ticket.status == TicketStatus.AVAILABLE)
    )
    if event_id:
        stmt = stmt.where(Ticket.event_id == event_id)
    if listing_type:
        stmt = stmt.where(Ticket.listing_type == listing_type)
    if min_price is not None:
        stmt = stmt.where(Ticket.price >= min_price)
    if max_price is not None:
        stmt = stmt.where(Ticket.price <= max_price)
    if search:
        search_pattern = f"%{search}%"
        stmt = stmt.where(
            (Event.title.ilike(search_pattern)) | (Event.venue.ilike(search_pattern))
        )
    stmt = stmt.order_by(Ticket.created_at.desc())
    return _paginate(db, stmt, page, page_size)


def get_tickets_per_page(
    db: Session,
    page: int = 1,
    page_size: int = 20,
    status: Optional[str] = None,
    search: Optional[str] = None,
) -> dict:
    stmt = (
        select(Ticket)
        .join(Event, Ticket.event_id == Event.id)
        .join(User, Ticket.seller_id == User.id)
    )
    if status:
        stmt = stmt.where(Ticket.status == status)
    if search:
        search_pattern = f"%{search}%"
        stmt = stmt.where(
            (Event.title.ilike(search_pattern))
            | (User.name.ilike(search_pattern))
            | (User.email.ilike(search_pattern))
        )
    stmt = stmt.order_by(Ticket.created_at.desc())
    return _paginate(db, stmt, page, page_size)


def get_available_tickets_by_event(db: Session, event: Event) -> Sequence[Ticket]:
    stmt = (
        select(Ticket)
        .where(Ticket.event_id == event.id, Ticket.status == TicketStatus.AVAILABLE)
        .order_by(Ticket.price.asc())
    )
    return db.execute(stmt).scalars().all()


def get_owned_tickets(db: Session, user: User) -> Sequence[Ticket]:
    stmt = (
        select(Ticket)
        .where(Ticket.buyer_id == user.id, Ticket.status == TicketStatus.SOLD)
        .order_by(Ticket.updated_at.desc())
    )
    return db.execute(stmt).scalars().all()


def get_listings_by_seller(db: Session, user: User) -> Sequence[Ticket]:
    stmt = (
        select(Ticket)
        .where(Ticket.seller_id == user.id, Ticket.status == TicketStatus.AVAILABLE)
        .order_by(Ticket.created_at.desc())
    )
    return db.execute(stmt).scalars().all()


def get_expired_auctions(db: Session, now: datetime) -> Sequence[Ticket]:
    stmt = select(Ticket).where(
        Ticket.status == TicketStatus.AVAILABLE,
        Ticket.listing_type == ListingType.AUCTION,
        Ticket.end_time.is_not(None),
        Ticket.end_time < now,
    )
    return db.execute(stmt).scalars().all()


def count_tickets(db: Session, status: Optional[str] = None) -> int:
    stmt = select(func.count(Ticket.id))
    if status:
        stmt = stmt.where(Ticket.status == status)
    return db.execute(stmt).scalar()


def insert_ticket(
    db: Session,
    event: Event,
    seller: User,
    price: int,
    listing_type: str = ListingType.DIRECT_SALE,
    end_time: Optional[datetime] = None,
    section: Optional[str] = None,
    row: Optional[str] = None,
    seat: Optional[str] = None,
    is_commit: bool = True,
) -> Ticket:
    now = utc_now()
    ticket = Ticket(
        event_id=event.id,
        seller_id=seller.id,
        price=price,
        section=section,
        row=row,
        seat=seat,
        status=TicketStatus.AVAILABLE,
        listing_type=listing_type,
        end_time=as_utc(end_time),
        version=1,
        created_at=now,
        updated_at=now,
    )
    db.add(ticket)
    if is_commit:
        db.commit()
    return ticket


def update_ticket(db: Session, ticket: Ticket, is_commit: bool = True, **fields) -> Ticket:
    for key, value in fields.items():
        if value is None:
            continue
        setattr(ticket, key, value)
    ticket.version = ticket.version + 1
    ticket.updated_at = utc_now()
    db.add(ticket)
    if is_commit:
        db.commit()
    return ticket


def _transition(
    db: Session, ticket: Ticket, from_status: str, **values
) -> bool:
    """Move ``ticket`` out of ``from_status`` only if nobody changed it since it was read.

    Returns False when another transaction got there first.
    """
    stmt = (
        update(Ticket)
        .where(
            Ticket.id == ticket.id,
            Ticket.status == from_status,
            Ticket.version == ticket.version,
        )
        .values(version=Ticket.version + 1, updated_at=utc_now(), **values)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    db.expire(ticket)
    return result.rowcount == 1


def sell_ticket(
    db: Session, ticket: Ticket, buyer_id, listing_type: Optional[str] = None
) -> bool:
    values = {"status": TicketStatus.SOLD, "buyer_id": buyer_id}
    if listing_type is not None:
        values["listing_type"] = listing_type
        values["end_time"] = None
    return _transition(db, ticket, TicketStatus.AVAILABLE, **values)


def expire_ticket(db: Session, ticket: Ticket) -> bool:
    return _transition(db, ticket, TicketStatus.AVAILABLE, status=TicketStatus.EXPIRED)


def relist_ticket(
    db: Session,
    ticket: Ticket,
    price: int,
    listing_type: str,
    end_time: Optional[datetime] = None,
) -> bool:
    return _transition(
        db,
        ticket,
        TicketStatus.SOLD,
        status=TicketStatus.AVAILABLE,
        seller_id=ticket.buyer_id,
        buyer_id=None,
        price=price,
        listing_type=listing_type,
        end_time=as_utc(end_time),
    )


def delete_ticket(db: Session, ticket: Ticket, is_commit: bool = True) -> None:
    db.delete(ticket)
    if is_commit:
        db.commit()


def purge_ticket(db: Session, ticket: Ticket, is_commit: bool = True) -> None:
    """Delete a ticket together with its bids and purchase history."""
    db.execute(delete(Bid).where(Bid.ticket_id == ticket.id))
    db.execute(delete(Purchase).where(Purchase.ticket_id == ticket.id))
    db.delete(ticket)
    if is_commit:
        db.commit()
