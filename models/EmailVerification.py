import uuid
from sqlalchemy import Uuid, DateTime, ForeignKey, String
from models import Base
from sqlalchemy.orm import mapped_column, Mapped, relationship


class EmailVerification(Base):
    __tablename__ = "email_verification"

    id: Mapped[uuid.UUID] = mapped_column(
        "id", Uuid(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        "user_id",
        ForeignKey("user.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    verification_code: Mapped[str] = mapped_column(
        "verification_code", String, nullable=False, index=True
    )
    expired_at = mapped_column("expired_at", DateTime(timezone=True), nullable=False)

    user = relationship("User", backref="email_verification_user", foreign_keys=[user_id])
