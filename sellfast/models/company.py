from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from sellfast.core.ids import gen_id

from sellfast.models.base import Base, AuditMixin


class Company(AuditMixin, Base):
    """A brand. Companies are linked to items through ItemCompany."""

    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("cmp"))
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    icon: Mapped[str | None] = mapped_column(Text, nullable=True)


class ItemCompany(Base):
    __tablename__ = "item_companies"
    __table_args__ = (
        UniqueConstraint("item_id", "company_id", name="uq_item_company"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("icm"))
    item_id: Mapped[str] = mapped_column(String, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id: Mapped[str] = mapped_column(String, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
