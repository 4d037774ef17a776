from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Sequence

from sellfast.wizard.catalog import CategorySpecification


class StepKind(str, Enum):
    CATEGORY = "category"
    BRAND = "brand"
    DEVICE = "device"
    SPECIFICATION = "specification"
    PHOTOS = "photos"
    REVIEW = "review"


CATEGORY_STEP = 0
BRAND_STEP = 1
DEVICE_STEP = 2
FIRST_SPEC_STEP = 3


@dataclass(frozen=True)
class Step:
    number: int
    kind: StepKind
    label: str
    specification: CategorySpecification | None = None

    @property
    def field(self) -> str:
        if self.specification is not None:
            return f"spec_{self.specification.id}"
        return self.kind.value


def photos_step(spec_count: int) -> int:
    return FIRST_SPEC_STEP + spec_count


def review_step(spec_count: int) -> int:
    return FIRST_SPEC_STEP + spec_count + 1


def resolve_steps(specifications: Sequence[CategorySpecification]) -> list[Step]:
    """
    Build the step list for the currently loaded specifications.

    The same cursor value means different steps for items with different
    specification counts, so always resolve against the current list.
    """
    steps = [
        Step(CATEGORY_STEP, StepKind.CATEGORY, "Select Category"),
        Step(BRAND_STEP, StepKind.BRAND, "Select Brand"),
        Step(DEVICE_STEP, StepKind.DEVICE, "Search Device"),
    ]
    steps += [
        Step(FIRST_SPEC_STEP + i, StepKind.SPECIFICATION, spec.name, spec)
        for i, spec in enumerate(specifications)
    ]
    n = len(specifications)
    steps += [
        Step(photos_step(n), StepKind.PHOTOS, "Photos & Location"),
        Step(review_step(n), StepKind.REVIEW, "Review & Submit"),
    ]
    return steps


def step_at(steps: Sequence[Step], cursor: int) -> Step:
    cursor = max(0, min(cursor, len(steps) - 1))
    return steps[cursor]


def spec_index(cursor: int, spec_count: int) -> int | None:
    idx = cursor - FIRST_SPEC_STEP
    return idx if 0 <= idx < spec_count else None


def step_after_item_loaded(specifications: Sequence[CategorySpecification]) -> int:
    """First specification step, or straight to photos/location when there are none."""
    return FIRST_SPEC_STEP if specifications else photos_step(0)


def _answered(specs: Mapping[str, str], spec_id: str) -> bool:
    return bool(specs.get(spec_id, "").strip())


def step_after_answer(
    specifications: Sequence[CategorySpecification],
    specs: Mapping[str, str],
    answered_id: str,
    current_step: int,
) -> int | None:
    """
    Where to go after a specification was answered, or None to stay.

    Lands on photos/location once nothing left is worth asking for: every
    specification is answered, or the answered one was the last, or only
    optional ones remain after it with every required one answered.
    Otherwise moves to the next specification, but only when the answer was
    given on its own step. Never goes past photos/location.
    """
    n = len(specifications)
    idx = next((i for i, s in enumerate(specifications) if s.id == answered_id), None)
    if idx is None or not _answered(specs, answered_id):
        return None

    photos = photos_step(n)
    if all(_answered(specs, s.id) for s in specifications):
        return photos

    remaining = specifications[idx + 1:]
    required_done = all(_answered(specs, s.id) for s in specifications if s.is_required)
    if not remaining or (required_done and not any(s.is_required for s in remaining)):
        return photos

    if current_step == FIRST_SPEC_STEP + idx:
        return min(current_step + 1, photos)
    return None
