from __future__ import annotations

from dataclasses import dataclass, field

from sellfast.wizard.catalog import CatalogFetchers, CategorySpecification
from sellfast.wizard.draft import ListingDraft
from sellfast.wizard.filters import filter_items, search_filter
from sellfast.wizard.steps import DEVICE_STEP, Step, StepKind, resolve_steps, step_at


@dataclass(frozen=True)
class Choice:
    id: str
    label: str
    icon: str | None = None
    selected: bool = False


@dataclass(frozen=True)
class ReviewLine:
    label: str
    value: str


@dataclass(frozen=True)
class StepView:
    step: Step
    steps: list[Step]
    title: str
    subtitle: str
    loading: bool = False
    error: str | None = None
    choices: list[Choice] = field(default_factory=list)

    # "grid", "buttons", "text", "number", "textarea", "photos_location" or "review"
    input_kind: str = "grid"
    value: str | None = None
    required: bool = False
    images: list[str] = field(default_factory=list)
    location: str = ""
    review: list[ReviewLine] = field(default_factory=list)


def _spec_input_kind(spec: CategorySpecification) -> str:
    if spec.value_type == "select":
        return "buttons"
    return spec.value_type


def _review_lines(draft: ListingDraft, specifications: list[CategorySpecification]) -> list[ReviewLine]:
    lines = [
        ReviewLine("Category", draft.category_name or ""),
        ReviewLine("Brand", draft.brand_name or ""),
        ReviewLine("Device", draft.item_name or ""),
    ]
    lines += [ReviewLine(s.name, draft.specs[s.id]) for s in specifications if draft.specs.get(s.id)]
    lines += [
        ReviewLine("Location", draft.location),
        ReviewLine("Photos", str(len(draft.images))),
    ]
    return lines


def specifications_error(draft: ListingDraft, catalog: CatalogFetchers) -> str | None:
    """The fetch error while the selected item's specifications could not be loaded."""
    if draft.item_id and catalog.specifications.error:
        return catalog.specifications.error
    return None


def displayed_cursor(draft: ListingDraft, catalog: CatalogFetchers) -> int:
    # Without its specifications the saved cursor cannot be mapped to a step.
    if specifications_error(draft, catalog):
        return min(draft.current_step, DEVICE_STEP)
    return draft.current_step


def render_step(
    draft: ListingDraft,
    catalog: CatalogFetchers,
    *,
    brand_search: str = "",
    item_search: str = "",
    error: str | None = None,
) -> StepView:
    """View model for the draft's current step. Holds no state of its own."""
    specifications = catalog.specifications.items
    steps = resolve_steps(specifications)
    step = step_at(steps, displayed_cursor(draft, catalog))
    specs_error = specifications_error(draft, catalog)

    if step.kind is StepKind.CATEGORY:
        return StepView(
            step, steps, "Category", "Choose a category for your listing",
            loading=catalog.categories.loading,
            error=error or catalog.categories.error,
            choices=[Choice(c.id, c.name, c.icon, c.id == draft.category_id) for c in catalog.categories.items],
        )

    if step.kind is StepKind.BRAND:
        brands = search_filter(catalog.brands.items, brand_search)
        return StepView(
            step, steps, "SELECT DEVICE BRAND", f"Choose the brand for {draft.category_name or 'your device'}",
            loading=catalog.brands.loading,
            error=error or catalog.brands.error,
            choices=[Choice(b.id, b.name, b.icon, b.id == draft.brand_id) for b in brands],
        )

    if step.kind is StepKind.DEVICE:
        # an over-narrow filter shows the whole brand rather than nothing
        items = filter_items(catalog.items.items, category_id=draft.category_id, specs=draft.specs) or catalog.items.items
        items = search_filter(items, item_search)
        return StepView(
            step, steps, "SELECT DEVICE", f"Choose your {draft.brand_name or 'brand'} device model",
            loading=catalog.items.loading,
            error=error or catalog.items.error or specs_error,
            choices=[Choice(i.id, i.name, None, i.id == draft.item_id) for i in items],
        )

    if step.kind is StepKind.SPECIFICATION:
        spec = step.specification
        return StepView(
            step, steps, spec.name, f"Provide details about your {draft.item_name or 'device'}",
            loading=catalog.specifications.loading,
            error=error or catalog.specifications.error,
            choices=[Choice(o, o, None, draft.specs.get(spec.id) == o) for o in spec.options],
            input_kind=_spec_input_kind(spec),
            value=draft.specs.get(spec.id),
            required=spec.is_required,
        )

    if step.kind is StepKind.PHOTOS:
        return StepView(
            step, steps, "Photos & Location", "Upload photos and set your location",
            error=error,
            input_kind="photos_location",
            images=list(draft.images),
            location=draft.location,
        )

    return StepView(
        step, steps, "Review & Submit", "Review your listing before submitting",
        error=error,
        input_kind="review",
        images=list(draft.images),
        location=draft.location,
        review=_review_lines(draft, specifications),
    )
