from enum import StrEnum
import uuid
from models import Base
from sqlalchemy import Uuid, DateTime, String, Boolean
from sqlalchemy.orm import mapped_column, Mapped, relationship


class UserRole(StrEnum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "user"

    id: Mapped[uuid.UUID] = mapped_column(
        "id", Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(
        "email", String(255), nullable=False, unique=True, index=True
    )
    name: Mapped[str] = mapped_column("name", String(100), nullable=False)
    phone: Mapped[str] = mapped_column("phone", String(20), nullable=True)
    password: Mapped[str] = mapped_column("password", String, nullable=False)
    role: Mapped[str] = mapped_column(
        "role", String, nullable=False, default=UserRole.USER
    )
    banned: Mapped[bool] = mapped_column(
        "banned", Boolean, nullable=False, default=False
    )
    email_verified_at = mapped_column(
        "email_verified_at", DateTime(timezone=True), nullable=True
    )
    created_at = mapped_column("created_at", DateTime(timezone=True))
    updated_at = mapped_column("updated_at", DateTime(timezone=True))

    # One to Many
    tokens = relationship(
        "Token", back_populates="user", cascade="all, delete-orphan"
    )
    tickets_sold = relationship(
        "Ticket", back_populates="seller", foreign_keys="Ticket.seller_id"
    )
    tickets_bought = relationship(
        "Ticket", back_populates="buyer", foreign_keys="Ticket.buyer_id"
    )
    bids = relationship("Bid", back_populates="bidder")
    purchases = relationship("Purchase", back_populates="buyer")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_email_verified(self) -> bool:
        return self.email_verified_at is not None
