from datetime import datetime, timedelta
from typing import Optional

import jwt
from sqlalchemy.orm import Session

from core.helper import utc_now
from core.security import generate_hash_password
from models.Bid import Bid, BidStatus
from models.Event import Event
from models.Ticket import ListingType, Ticket, TicketStatus
from models.Token import Token
from models.User import User, UserRole
from settings import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY


def create_user(
    db: Session,
    email: str,
    name: str = "Test User",
    password: str = "password",
    role: str = UserRole.USER,
    verified: bool = True,
    banned: bool = False,
) -> User:
    now = utc_now()
    user = User(
        email=email,
        name=name,
        password=generate_hash_password(password),
        role=role,
        banned=banned,
        email_verified_at=now if verified else None,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    db.commit()
    return user


def create_token(db: Session, user: User) -> str:
    expire = utc_now() + timedelta(minutes=float(ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "id": str(user.id),
        "email": user.email,
        "exp": expire,
    }
    token_str = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)
    db.add(Token(user_id=user.id, token=token_str, expired_at=expire))
    db.commit()
    return token_str


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_event(
    db: Session,
    title: str = "Coldplay: Music of the Spheres",
    category: str = "Concert",
    date: Optional[datetime] = None,
) -> Event:
    now = utc_now()
    event = Event(
        title=title,
        description="World tour",
        venue="DY Patil Stadium, Mumbai",
        date=date or now + timedelta(days=30),
        category=category,
        capacity=45000,
        created_at=now,
        updated_at=now,
    )
    db.add(event)
    db.commit()
    return event


def create_ticket(
    db: Session,
    event: Event,
    seller: User,
    price: int = 50000,
    listing_type: str = ListingType.DIRECT_SALE,
    end_time: Optional[datetime] = None,
    status: str = TicketStatus.AVAILABLE,
    buyer: Optional[User] = None,
) -> Ticket:
    now = utc_now()
    if listing_type == ListingType.AUCTION and end_time is None:
        end_time = now + timedelta(days=1)
    ticket = Ticket(
        event_id=event.id,
        seller_id=seller.id,
        buyer_id=buyer.id if buyer else None,
        price=price,
        section="A",
        row="10",
        seat="12",
        status=status,
        listing_type=listing_type,
        end_time=end_time,
        version=1,
        created_at=now,
        updated_at=now,
    )
    db.add(ticket)
    db.commit()
    return ticket


def create_bid(
    db: Session,
    ticket: Ticket,
    bidder: User,
    amount: int,
    status: str = BidStatus.PENDING,
) -> Bid:
    now = utc_now()
    bid = Bid(
        ticket_id=ticket.id,
        bidder_id=bidder.id,
        amount=amount,
        status=status,
        created_at=now,
        updated_at=now,
    )
    db.add(bid)
    db.commit()
    return bid
