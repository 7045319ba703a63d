from datetime import datetime
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from models.EmailVerification import EmailVerification
from models.User import User
import secrets
import string


def generate_verification_code() -> str:
    length = 32
    characters = string.ascii_uppercase + string.ascii_lowercase + string.digits
    verification_code = "".join(secrets.choice(characters) for _ in range(length))
    return verification_code


def get_email_verification_by_user(
    db: Session, user: User
) -> Optional[EmailVerification]:
    stmt = select(EmailVerification).where(EmailVerification.user_id == user.id)
    data = db.execute(stmt).scalar()
    return data


def get_email_verification_by_verification_code(
    db: Session, verification_code: str
) -> Optional[EmailVerification]:
    stmt = select(EmailVerification).where(
        EmailVerification.verification_code == verification_code
    )
    data = db.execute(stmt).scalar()
    return data


def upsert_email_verification(
    db: Session,
    user: User,
    verification_code: str,
    expired_at: datetime,
    is_commit: bool = True,
) -> EmailVerification:
    email_verification = get_email_verification_by_user(db=db, user=user)
    if email_verification is None:
        email_verification = EmailVerification(user_id=user.id)
    email_verification.verification_code = verification_code
    email_verification.expired_at = expired_at
    db.add(email_verification)
    if is_commit:
        db.commit()
    return email_verification


def delete_email_verification(
    db: Session,
    email_verification: EmailVerification,
    is_commit: bool = True,
):
    db.delete(email_verification)
    if is_commit:
        db.commit()
