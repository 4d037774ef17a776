from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from sellfast.core.ids import gen_id

from sellfast.models.base import Base, AuditMixin


class Item(AuditMixin, Base):
    __tablename__ = "items"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("itm"))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category_id: Mapped[str] = mapped_column(String, ForeignKey("item_categories.id"), nullable=False, index=True)
