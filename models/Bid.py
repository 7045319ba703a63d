from enum import StrEnum
import uuid
from sqlalchemy import CheckConstraint, Uuid, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import mapped_column, Mapped, relationship
from models import Base


class BidStatus(StrEnum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Bid(Base):
    __tablename__ = "bid"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_bid_amount_positive"),)

    id: Mapped[uuid.UUID] = mapped_column(
        "id", Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        "ticket_id", ForeignKey("ticket.id"), nullable=False, index=True
    )
    bidder_id: Mapped[uuid.UUID] = mapped_column(
        "bidder_id", ForeignKey("user.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column("amount", Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        "status", String, nullable=False, default=BidStatus.PENDING, index=True
    )
    created_at = mapped_column("created_at", DateTime(timezone=True))
    updated_at = mapped_column("updated_at", DateTime(timezone=True))

    ticket = relationship("Ticket", back_populates="bids")
    bidder = relationship("User", back_populates="bids")
