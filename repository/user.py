import datetime
from typing import Optional
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from core.helper import page_count, utc_now
from models.Bid import Bid
from models.EmailVerification import EmailVerification
from models.Purchase import Purchase
from models.ResetPassword import ResetPassword
from models.Ticket import Ticket
from models.Token import Token
from models.User import User, UserRole


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    stmt = select(User).where(func.lower(User.email) == email.lower())
    data = db.execute(stmt).scalar()
    return data


def get_user_by_id(db: Session, id: str) -> Optional[User]:
    stmt = select(User).where(User.id == id)
    return db.execute(stmt).scalar()


def get_users_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 20,
    search: Optional[str] = None,
    role: Optional[str] = None,
) -> dict:
    stmt = select(User)
    if search:
        search_pattern = f"%{search}%"
        stmt = stmt.where(
            (User.name.ilike(search_pattern)) | (User.email.ilike(search_pattern))
        )
    if role:
        stmt = stmt.where(User.role == role)

    count = db.execute(select(func.count()).select_from(stmt.subquery())).scalar()
    stmt = (
        stmt.order_by(User.created_at.desc())
        .limit(page_size)
        .offset((page - 1) * page_size)
    )
    results = db.execute(stmt).scalars().all()
    return {
        "page": page,
        "page_size": page_size,
        "count": count,
        "page_count": page_count(count, page_size),
        "results": results,
    }


def count_users(db: Session, role: Optional[str] = None) -> int:
    stmt = select(func.count(User.id))
    if role:
        stmt = stmt.where(User.role == role)
    return db.execute(stmt).scalar()


def create_user(
    db: Session,
    email: str,
    name: str,
    password: str,
    phone: Optional[str] = None,
    role: str = UserRole.USER,
    email_verified_at: Optional[datetime.datetime] = None,
    is_commit: bool = True,
) -> User:
    now = utc_now()
    user = User(
        email=email,
        name=name,
        password=password,
        phone=phone,
        role=role,
        banned=False,
        email_verified_at=email_verified_at,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    if is_commit:
        db.commit()
    else:
        db.flush()
    return user


def update_user(
    db: Session,
    user: User,
    name: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    role: Optional[str] = None,
    is_commit: bool = True,
) -> User:
    if name is not None:
        user.name = name
    if email is not None:
        user.email = email
    if phone is not None:
        user.phone = phone
    if role is not None:
        user.role = role
    user.updated_at = utc_now()
    db.add(user)
    if is_commit:
        db.commit()
    return user


def update_password(
    db: Session, user: User, password: str, is_commit: bool = True
) -> User:
    user.password = password
    user.updated_at = utc_now()
    db.add(user)
    if is_commit:
        db.commit()
    return user


def mark_email_verified(db: Session, user: User, is_commit: bool = True) -> User:
    user.email_verified_at = utc_now()
    user.updated_at = user.email_verified_at
    db.add(user)
    if is_commit:
        db.commit()
    return user


def set_banned(db: Session, user: User, banned: bool, is_commit: bool = True) -> User:
    user.banned = banned
    user.updated_at = utc_now()
    db.add(user)
    if is_commit:
        db.commit()
    return user


def has_marketplace_history(db: Session, user: User) -> bool:
    """True when the user appears on any ticket or purchase."""
    stmt = select(func.count(Ticket.id)).where(
        (Ticket.seller_id == user.id) | (Ticket.buyer_id == user.id)
    )
    if db.execute(stmt).scalar():
        return True
    stmt = select(func.count(Purchase.id)).where(Purchase.buyer_id == user.id)
    return bool(db.execute(stmt).scalar())


def delete_user(db: Session, user: User, is_commit: bool = True) -> None:
    db.execute(delete(Bid).where(Bid.bidder_id == user.id))
    db.execute(delete(Token).where(Token.user_id == user.id))
    db.execute(
        delete(EmailVerification).where(EmailVerification.user_id == user.id)
    )
    db.execute(delete(ResetPassword).where(ResetPassword.user_id == user.id))
    db.delete(user)
    if is_commit:
        db.commit()
