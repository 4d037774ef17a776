from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sellfast.core.ids import gen_id

from sellfast.models.base import Base, AuditMixin


class Specification(AuditMixin, Base):
    __tablename__ = "specifications"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("spc"))
    item_id: Mapped[str] = mapped_column(String, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(120), nullable=False)

    # "select" | "text" | "number" | "textarea"
    value_type: Mapped[str] = mapped_column(String(20), nullable=False, default="text")

    # JSON-encoded list of option strings (select only)
    options: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order: Mapped[int | None] = mapped_column(Integer, nullable=True)
