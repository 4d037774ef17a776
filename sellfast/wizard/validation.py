from __future__ import annotations

from typing import Sequence

from sellfast.wizard.catalog import CategorySpecification
from sellfast.wizard.draft import ListingDraft
from sellfast.wizard.steps import BRAND_STEP, CATEGORY_STEP, DEVICE_STEP, photos_step, spec_index


def _blank(value: object) -> bool:
    return value is None or not str(value).strip()


def missing_fields(draft: ListingDraft, specifications: Sequence[CategorySpecification]) -> list[str]:
    """Names of everything that blocks submission, in display order."""
    missing: list[str] = []
    if _blank(draft.category_id) or _blank(draft.category_name):
        missing.append("Category")
    if _blank(draft.brand_id) or _blank(draft.brand_name):
        missing.append("Brand")
    if _blank(draft.item_id) or _blank(draft.item_name):
        missing.append("Device/Model")
    if _blank(draft.location):
        missing.append("Location")
    if not draft.images:
        missing.append("Photos")

    for spec in specifications:
        if spec.is_required and _blank(draft.specs.get(spec.id)):
            missing.append(spec.name)
    return missing


def step_error(draft: ListingDraft, specifications: Sequence[CategorySpecification]) -> str | None:
    """Message blocking `next` from the draft's current step, or None."""
    step = draft.current_step
    n = len(specifications)

    if step == CATEGORY_STEP and _blank(draft.category_id) and _blank(draft.category_name):
        return "Please select a category"
    if step == BRAND_STEP and _blank(draft.brand_id):
        return "Please select a brand/company"
    if step == DEVICE_STEP and _blank(draft.item_id):
        return "Please select a device/model"

    idx = spec_index(step, n)
    if idx is not None:
        spec = specifications[idx]
        if spec.is_required and _blank(draft.specs.get(spec.id)):
            return f"Please select {spec.name}"

    if step == photos_step(n) and _blank(draft.location):
        return "Please enter or fetch your location"
    return None
