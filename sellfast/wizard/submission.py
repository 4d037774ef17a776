from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from opentelemetry import trace

from sellfast.wizard.catalog import CategorySpecification
from sellfast.wizard.draft import ListingDraft
from sellfast.wizard.store import ProgressStore
from sellfast.wizard.transport import HttpClient
from sellfast.wizard.validation import missing_fields

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

CREATE_LISTING_PATH = "/api/listings/create"


class SubmissionOutcome(str, Enum):
    SUBMITTED = "submitted"
    INVALID = "invalid"
    AUTH_REQUIRED = "auth_required"
    FAILED = "failed"
    NETWORK_ERROR = "network_error"


@dataclass
class SubmissionResult:
    outcome: SubmissionOutcome
    listing: dict[str, Any] | None = None
    error: str | None = None
    missing: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome is SubmissionOutcome.SUBMITTED


def build_payload(draft: ListingDraft) -> dict[str, Any]:
    title = f"{draft.brand_name} {draft.item_name}"
    return {
        "itemId": draft.item_id,
        "companyId": draft.brand_id,
        "title": title,
        "description": f"Listing for {title}",
        "price": 0,
        "address": draft.location,
        "latitude": draft.latitude,
        "longitude": draft.longitude,
        "specifications": [
            {"specificationId": spec_id, "value": value}
            for spec_id, value in draft.specs.items()
            if value and value.strip()
        ],
        "images": list(draft.images),
    }


class SubmissionHandler:
    def __init__(self, http: HttpClient, store: ProgressStore):
        self._http = http
        self._store = store

    async def submit(
        self,
        specifications: Sequence[CategorySpecification],
        *,
        authenticated: bool,
    ) -> SubmissionResult:
        """
        Validate the draft and POST it once.

        The draft is only cleared on success; on 401 it is kept so the user
        can log in and resume.
        """
        if not authenticated:
            return SubmissionResult(SubmissionOutcome.AUTH_REQUIRED)

        draft = self._store.draft
        missing = missing_fields(draft, specifications)
        if missing:
            return SubmissionResult(
                SubmissionOutcome.INVALID,
                error=f"Missing required fields: {', '.join(missing)}",
                missing=missing,
            )

        with tracer.start_as_current_span("listing.submit") as span:
            span.set_attribute("listing.images", len(draft.images))
            result = await self._http.post_json(
                CREATE_LISTING_PATH,
                json_body=build_payload(draft),
                headers={"Idempotency-Key": draft.idempotency_key},
            )
            if result.status_code is not None:
                span.set_attribute("http.status_code", result.status_code)

        if result.status_code is None:
            log.warning("submit: transport failure (%s)", result.error_code)
            return SubmissionResult(SubmissionOutcome.NETWORK_ERROR, error="Network error")

        if result.status_code == 401:
            log.info("submit: session rejected, keeping draft")
            return SubmissionResult(SubmissionOutcome.AUTH_REQUIRED)

        if not result.ok:
            return SubmissionResult(SubmissionOutcome.FAILED, error=result.server_error or "Error creating listing")

        await self._store.reset()
        listing = result.detail.get("listing")
        log.info("submit: listing %s created", (listing or {}).get("id"))
        return SubmissionResult(SubmissionOutcome.SUBMITTED, listing=listing)
