from pydantic import Field

from sellfast.schemas.common import CamelModel


class CategoryOut(CamelModel):
    id: str
    name: str
    description: str | None = None
    icon: str | None = None


class CategoriesOut(CamelModel):
    categories: list[CategoryOut] = Field(default_factory=list)
    count: int = 0


class CompanyOut(CamelModel):
    id: str
    name: str
    icon: str | None = None


class SpecificationOut(CamelModel):
    id: str
    name: str
    value_type: str = "text"
    # JSON-encoded string array, as stored
    options: str | None = None
    order: int | None = None
    is_required: bool = False


class SpecificationRefOut(CamelModel):
    id: str
    name: str


class ItemOut(CamelModel):
    id: str
    name: str
    specifications: list[SpecificationOut] = Field(default_factory=list)


class ItemDetailOut(ItemOut):
    category_id: str
