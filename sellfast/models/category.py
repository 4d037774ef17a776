from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sellfast.core.ids import gen_id

from sellfast.models.base import Base, AuditMixin


class ItemCategory(AuditMixin, Base):
    __tablename__ = "item_categories"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("cat"))
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # emoji, icon key, URL or data URI
    icon: Mapped[str | None] = mapped_column(Text, nullable=True)
