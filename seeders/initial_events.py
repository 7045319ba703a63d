from datetime import datetime, timezone
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.helper import utc_now
from models.Event import Event


def initial_events(db: Session, is_commit: bool = True):
    now = utc_now()
    events = [
        Event(
            id=uuid.UUID("0c6f7d1e-3b1a-4d7e-9a51-0f4c2b8e1a01"),
            title="Arijit Singh Live in Concert",
            description="An evening of romantic hits under the stars.",
            venue="DY Patil Stadium, Mumbai",
            date=datetime(2027, 2, 14, 13, 30, tzinfo=timezone.utc),
            category="Concert",
            capacity=45000,
        ),
        Event(
            id=uuid.UUID("0c6f7d1e-3b1a-4d7e-9a51-0f4c2b8e1a02"),
            title="India vs Australia, 3rd ODI",
            description="Day-night international at the home of Indian cricket.",
            venue="Eden Gardens, Kolkata",
            date=datetime(2027, 1, 22, 8, 0, tzinfo=timezone.utc),
            category="Sports",
            capacity=66000,
        ),
        Event(
            id=uuid.UUID("0c6f7d1e-3b1a-4d7e-9a51-0f4c2b8e1a03"),
            title="Sunburn Goa",
            description="Three days of electronic music on the beach.",
            venue="Vagator, Goa",
            date=datetime(2026, 12, 28, 10, 0, tzinfo=timezone.utc),
            category="Festival",
            capacity=35000,
        ),
        Event(
            id=uuid.UUID("0c6f7d1e-3b1a-4d7e-9a51-0f4c2b8e1a04"),
            title="Zakir Khan Stand-up",
            description="New hour of stand-up comedy.",
            venue="Siri Fort Auditorium, New Delhi",
            date=datetime(2026, 11, 30, 14, 0, tzinfo=timezone.utc),
            category="Comedy",
            capacity=1800,
        ),
    ]

    for event in events:
        stmt = select(Event).where(Event.id == event.id)
        existing = db.execute(stmt).scalar()
        if not existing:
            event.created_at = now
            event.updated_at = now
            db.add(event)
        else:
            existing.title = event.title
            existing.description = event.description
            existing.venue = event.venue
            existing.date = event.date
            existing.category = event.category
            existing.capacity = event.capacity
            existing.updated_at = now

    if is_commit:
        db.commit()
