from __future__ import annotations

import logging
import uuid

from pydantic import BaseModel, ConfigDict, Field, ValidationError

log = logging.getLogger(__name__)

STORAGE_KEY = "listing_progress"


def new_idempotency_key() -> str:
    return f"draft_{uuid.uuid4().hex}"


class ListingDraft(BaseModel):
    """
    Working state of one in-progress listing.

    The category -> brand -> item -> specs -> location/photos fields form a
    dependency chain; changing an upstream selection invalidates everything
    after it (see ProgressStore).
    """

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    category_id: str | None = None
    category_name: str | None = None
    brand_id: str | None = None
    brand_name: str | None = None
    item_id: str | None = None
    item_name: str | None = None

    # specification id -> chosen value
    specs: dict[str, str] = Field(default_factory=dict)

    location: str = ""
    latitude: float | None = None
    longitude: float | None = None

    # data URIs, upload order
    images: list[str] = Field(default_factory=list)

    current_step: int = 0

    # sent as Idempotency-Key on submission so a retried POST cannot duplicate the listing
    idempotency_key: str = Field(default_factory=new_idempotency_key)

    # bumped on every persisted write (compare-and-swap)
    revision: int = 0

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, raw: str | bytes | None) -> ListingDraft | None:
        if not raw:
            return None
        try:
            return cls.model_validate_json(raw)
        except ValidationError:
            log.warning("discarding unreadable saved progress")
            return None
