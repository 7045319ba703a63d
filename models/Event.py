import uuid
from models import Base
from sqlalchemy import Uuid, DateTime, Integer, String, Text
from sqlalchemy.orm import mapped_column, Mapped, relationship


class Event(Base):
    __tablename__ = "event"

    id: Mapped[uuid.UUID] = mapped_column(
        "id", Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    title: Mapped[str] = mapped_column("title", String(200), nullable=False)
    description: Mapped[str] = mapped_column("description", Text, nullable=True)
    venue: Mapped[str] = mapped_column("venue", String(200), nullable=False)
    date = mapped_column("date", DateTime(timezone=True), nullable=False, index=True)
    image: Mapped[str] = mapped_column("image", String, nullable=True)
    category: Mapped[str] = mapped_column(
        "category", String(100), nullable=False, index=True
    )
    capacity: Mapped[int] = mapped_column("capacity", Integer, nullable=False)
    created_at = mapped_column("created_at", DateTime(timezone=True))
    updated_at = mapped_column("updated_at", DateTime(timezone=True))

    # One to Many
    tickets = relationship("Ticket", back_populates="event")
