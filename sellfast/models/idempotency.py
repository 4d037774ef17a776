from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from sellfast.core.ids import gen_id
from sellfast.models.base import Base, JsonType


class IdempotencyKey(Base):
    """
    One row per (user, Idempotency-Key) sent to POST /api/listings/create.

    The wizard sends its draft key on every submit, so a retry after a lost
    response replays `response` instead of creating a second listing.
    `response` stays NULL while the first attempt is still in flight.
    """

    __tablename__ = "idempotency_keys"
    __table_args__ = (UniqueConstraint("user_id", "key", name="uq_idempotency_user_key"),)

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("idm"))
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    key: Mapped[str] = mapped_column(String(200), nullable=False)

    body_fingerprint: Mapped[str] = mapped_column(String(80), nullable=False)
    response: Mapped[dict | None] = mapped_column(JsonType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
