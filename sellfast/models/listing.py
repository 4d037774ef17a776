from sqlalchemy import Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sellfast.core.ids import gen_id

from sellfast.models.base import Base, AuditMixin, JsonType


class Listing(AuditMixin, Base):
    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("lst"))

    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False, index=True)
    item_id: Mapped[str] = mapped_column(String, ForeignKey("items.id"), nullable=False)
    company_id: Mapped[str] = mapped_column(String, ForeignKey("companies.id"), nullable=False)

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0)

    address: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    # "PENDING" until an admin approves it
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="PENDING")

    # uploaded images live here until they are moved to object storage
    temp_data: Mapped[dict | None] = mapped_column(JsonType, nullable=True)


class ListingSpecification(Base):
    __tablename__ = "listing_specifications"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("lsp"))
    listing_id: Mapped[str] = mapped_column(String, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True)
    specification_id: Mapped[str] = mapped_column(String, ForeignKey("specifications.id"), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
