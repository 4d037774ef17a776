from sellfast.models.base import Base  # noqa: F401

from sellfast.models.category import ItemCategory  # noqa: F401
from sellfast.models.company import Company, ItemCompany  # noqa: F401
from sellfast.models.item import Item  # noqa: F401
from sellfast.models.specification import Specification  # noqa: F401
from sellfast.models.user import User, UserSession  # noqa: F401
from sellfast.models.listing import Listing, ListingSpecification  # noqa: F401
from sellfast.models.idempotency import IdempotencyKey  # noqa: F401
