from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.helper import as_utc, page_count, utc_now
from models.Event import Event
from models.Ticket import Ticket, TicketStatus


def get_event_by_id(db: Session, id: str) -> Optional[Event]:
    stmt = select(Event).where(Event.id == id)
    return db.execute(stmt).scalar()


def get_events_per_page(
    db: Session,
    page: int = 1,
    page_size: int = 12,
    category: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> dict:
    stmt = select(Event)
    if category:
        stmt = stmt.where(Event.category == category)
    if search:
        search_pattern = f"%{search}%"
        stmt = stmt.where(
            (Event.title.ilike(search_pattern))
            | (Event.venue.ilike(search_pattern))
            | (Event.description.ilike(search_pattern))
        )
    if start_date:
        stmt = stmt.where(Event.date >= as_utc(start_date))
    if end_date:
        stmt = stmt.where(Event.date <= as_utc(end_date))

    count = db.execute(select(func.count()).select_from(stmt.subquery())).scalar()
    stmt = (
        stmt.order_by(Event.date.asc())
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


def count_available_tickets(db: Session, event_ids: Sequence) -> dict:
    """Map of event id to the number of AVAILABLE tickets."""
    if not event_ids:
        return {}
    stmt = (
        select(Ticket.event_id, func.count(Ticket.id))
        .where(Ticket.event_id.in_(event_ids), Ticket.status == TicketStatus.AVAILABLE)
        .group_by(Ticket.event_id)
    )
    return {event_id: total for event_id, total in db.execute(stmt).all()}


def count_tickets(db: Session, event: Event) -> int:
    stmt = select(func.count(Ticket.id)).where(Ticket.event_id == event.id)
    return db.execute(stmt).scalar()


def get_categories(db: Session) -> list[str]:
    stmt = select(Event.category).distinct().order_by(Event.category.asc())
    return list(db.execute(stmt).scalars().all())


def get_upcoming_events(db: Session, limit: int = 5) -> Sequence[Event]:
    stmt = (
        select(Event)
        .where(Event.date >= utc_now())
        .order_by(Event.date.asc())
        .limit(limit)
    )
    return db.execute(stmt).scalars().all()


def count_events(db: Session) -> int:
    return db.execute(select(func.count(Event.id))).scalar()


def insert_event(
    db: Session,
    title: str,
    venue: str,
    date: datetime,
    category: str,
    capacity: int,
    description: Optional[str] = None,
    image: Optional[str] = None,
    is_commit: bool = True,
) -> Event:
    now = utc_now()
    event = Event(
        title=title,
        description=description,
        venue=venue,
        date=as_utc(date),
        image=image,
        category=category,
        capacity=capacity,
        created_at=now,
        updated_at=now,
    )
    db.add(event)
    if is_commit:
        db.commit()
    return event


def update_event(db: Session, event: Event, is_commit: bool = True, **fields) -> Event:
    for key, value in fields.items():
        if value is None:
            continue
        if key == "date":
            value = as_utc(value)
        setattr(event, key, value)
    event.updated_at = utc_now()
    db.add(event)
    if is_commit:
        db.commit()
    return event


def delete_event(db: Session, event: Event, is_commit: bool = True) -> None:
    db.delete(event)
    if is_commit:
        db.commit()
