from pydantic import Field

from sellfast.schemas.common import CamelModel


class ListingSpecValue(CamelModel):
    specification_id: str
    value: str


class ListingCreate(CamelModel):
    item_id: str | None = None
    company_id: str | None = None
    title: str | None = None
    description: str | None = None
    price: float | str | None = 0
    address: str | None = None
    latitude: float | str | None = None
    longitude: float | str | None = None
    specifications: list[ListingSpecValue] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)


class ListingOut(CamelModel):
    id: str
    user_id: str
    item_id: str
    company_id: str
    title: str
    description: str
    price: float
    address: str
    latitude: float | None
    longitude: float | None
    status: str
    images: list[str] = Field(default_factory=list)
    specifications: list[ListingSpecValue] = Field(default_factory=list)


class ListingCreatedOut(CamelModel):
    listing: ListingOut


class MyListingsOut(CamelModel):
    listings: list[ListingOut] = Field(default_factory=list)
