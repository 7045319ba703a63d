from enum import StrEnum
import uuid
from models import Base
from sqlalchemy import Uuid, DateTime, Integer, String, ForeignKey
from sqlalchemy.orm import mapped_column, Mapped, relationship


class PurchaseStatus(StrEnum):
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"


class Purchase(Base):
    __tablename__ = "purchase"

    id: Mapped[uuid.UUID] = mapped_column(
        "id", Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    ticket_id: Mapped[uuid.UUID] = mapped_column(
        "ticket_id", ForeignKey("ticket.id"), nullable=False, index=True
    )
    buyer_id: Mapped[uuid.UUID] = mapped_column(
        "buyer_id", ForeignKey("user.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column("amount", Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        "status", String, nullable=False, default=PurchaseStatus.COMPLETED
    )
    transaction_id: Mapped[str] = mapped_column(
        "transaction_id", String, nullable=True, index=True
    )
    created_at = mapped_column("created_at", DateTime(timezone=True), nullable=False)
    updated_at = mapped_column("updated_at", DateTime(timezone=True), nullable=True)

    # Relationship
    ticket = relationship("Ticket", back_populates="purchases")
    buyer = relationship("User", back_populates="purchases")
