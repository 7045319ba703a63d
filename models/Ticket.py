from enum import StrEnum
import uuid
from sqlalchemy import CheckConstraint, Uuid, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import mapped_column, Mapped, relationship
from models import Base


class TicketStatus(StrEnum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    EXPIRED = "EXPIRED"


class ListingType(StrEnum):
    DIRECT_SALE = "DIRECT_SALE"
    AUCTION = "AUCTION"


class Ticket(Base):
    __tablename__ = "ticket"
    __table_args__ = (CheckConstraint("price > 0", name="ck_ticket_price_positive"),)

    id: Mapped[uuid.UUID] = mapped_column(
        "id", Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        "event_id", ForeignKey("event.id"), nullable=False, index=True
    )
    seller_id: Mapped[uuid.UUID] = mapped_column(
        "seller_id", ForeignKey("user.id"), nullable=False, index=True
    )
    buyer_id: Mapped[uuid.UUID] = mapped_column(
        "buyer_id", ForeignKey("user.id"), nullable=True, index=True
    )
    # minor units (paise)
    price: Mapped[int] = mapped_column("price", Integer, nullable=False)
    section: Mapped[str] = mapped_column("section", String(50), nullable=True)
    row: Mapped[str] = mapped_column("row", String(50), nullable=True)
    seat: Mapped[str] = mapped_column("seat", String(50), nullable=True)
    status: Mapped[str] = mapped_column(
        "status", String, nullable=False, default=TicketStatus.AVAILABLE, index=True
    )
    listing_type: Mapped[str] = mapped_column(
        "listing_type", String, nullable=False, default=ListingType.DIRECT_SALE
    )
    end_time = mapped_column("end_time", DateTime(timezone=True), nullable=True)
    # bumped on every status transition, guards against double sale
    version: Mapped[int] = mapped_column("version", Integer, nullable=False, default=1)
    created_at = mapped_column("created_at", DateTime(timezone=True))
    updated_at = mapped_column("updated_at", DateTime(timezone=True))

    # Many to One
    event = relationship("Event", back_populates="tickets")
    seller = relationship(
        "User", back_populates="tickets_sold", foreign_keys=[seller_id]
    )
    buyer = relationship(
        "User", back_populates="tickets_bought", foreign_keys=[buyer_id]
    )

    # One to Many
    bids = relationship("Bid", back_populates="ticket")
    purchases = relationship("Purchase", back_populates="ticket")
