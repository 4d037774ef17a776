from __future__ import annotations

import asyncio
import functools
import logging
from typing import Sequence

from sellfast.wizard.catalog import CatalogFetchers, CategorySpecification
from sellfast.wizard.context import SessionUser, WizardContext
from sellfast.wizard.draft import ListingDraft
from sellfast.wizard.geolocation import LocationError
from sellfast.wizard.images import ImageUpload, ImageUploadResult, add_images, remove_image
from sellfast.wizard.persistence import DraftConflictError
from sellfast.wizard.render import StepView, displayed_cursor, render_step, specifications_error
from sellfast.wizard.steps import (
    BRAND_STEP,
    CATEGORY_STEP,
    DEVICE_STEP,
    FIRST_SPEC_STEP,
    Step,
    StepKind,
    photos_step,
    resolve_steps,
    review_step,
    step_after_answer,
    step_after_item_loaded,
    step_at,
)
from sellfast.wizard.store import ProgressStore
from sellfast.wizard.submission import SubmissionHandler, SubmissionOutcome, SubmissionResult
from sellfast.wizard.validation import step_error

log = logging.getLogger(__name__)

CONFLICT_MESSAGE = "Your listing progress was changed in another tab. It has been reloaded."


def _reloads_on_conflict(method):
    """Another session saved the draft first: take its version instead of failing."""

    @functools.wraps(method)
    async def wrapper(self: ListingWizard, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except DraftConflictError as e:
            log.warning("%s: %s, reloading saved progress", method.__name__, e)
            await self._reload_after_conflict()
            return None

    return wrapper


class ListingWizard:
    """
    Category -> brand -> device -> specifications -> photos/location -> review.

    Fetches only load data; the step resolver decides where to go once a
    fetch has been committed. Selections write straight into the progress
    store, so a restarted wizard resumes where it left off.
    """

    def __init__(self, context: WizardContext):
        self.ctx = context
        self.store = ProgressStore(context.persistence)
        self.catalog = CatalogFetchers(context.http)
        self.submission = SubmissionHandler(context.http, self.store)

        self.error: str | None = None
        self.brand_search = ""
        self.item_search = ""
        self.locating = False
        self.submitting = False
        self.needs_login = False
        self.result: SubmissionResult | None = None

        self._unsubscribe = context.auth.subscribe(self._on_auth_changed)

    # state

    @property
    def draft(self) -> ListingDraft:
        return self.store.draft

    @property
    def specifications(self) -> list[CategorySpecification]:
        return self.catalog.specifications.items

    @property
    def specifications_error(self) -> str | None:
        return specifications_error(self.draft, self.catalog)

    @property
    def steps(self) -> list[Step]:
        return resolve_steps(self.specifications)

    @property
    def current_step(self) -> Step:
        return step_at(self.steps, displayed_cursor(self.draft, self.catalog))

    def view(self) -> StepView:
        return render_step(
            self.draft,
            self.catalog,
            brand_search=self.brand_search,
            item_search=self.item_search,
            error=self.error,
        )

    def _selection(self) -> tuple[str | None, str | None, str | None]:
        d = self.draft
        return d.category_id, d.brand_id, d.item_id

    # lifecycle

    @_reloads_on_conflict
    async def start(self, *, category_name: str | None = None) -> ListingDraft | None:
        """
        Load categories and any saved progress. Lists behind a restored
        selection are fetched again, and specifications are in place before
        a specification step can render.
        """
        await self.catalog.fetch_categories()
        await self.store.load()

        if category_name and category_name != self.draft.category_name:
            category = next((c for c in self.catalog.categories.items if c.name == category_name), None)
            await self.store.select_category(category.id if category else None, category_name)
            await self.store.set_step(BRAND_STEP)

        await self._fetch_lists()
        if self.draft.item_id:
            await self._settle_specifications()
        return self.draft

    async def _fetch_lists(self) -> None:
        draft = self.draft
        if draft.category_name:
            await self.catalog.fetch_brands(draft.category_name)
        if draft.brand_id:
            await self.catalog.fetch_items(draft.brand_id, draft.category_name)
        if draft.item_id:
            await self.catalog.fetch_specifications(draft.item_id)

    async def _settle_specifications(self) -> None:
        """Fit saved answers and cursor to the loaded specifications, unless they failed to load."""
        failed = self.specifications_error
        if failed:
            log.warning("specifications for %s unavailable, keeping saved answers: %s", self.draft.item_id, failed)
            return
        await self.store.prune_specs({s.id for s in self.specifications})
        last = review_step(len(self.specifications))
        if self.draft.current_step > last:
            await self.store.set_step(last)

    @_reloads_on_conflict
    async def retry_specifications(self) -> bool:
        """Fetch the selected item's specifications again after a failure."""
        if not self.draft.item_id:
            return False
        self.error = None
        await self.catalog.fetch_specifications(self.draft.item_id)
        await self._settle_specifications()
        return self.specifications_error is None

    async def _reload_after_conflict(self) -> None:
        if await self.store.load() is None:
            # the other session discarded the draft
            await self.store.reset()
        self.catalog.clear_items()
        self.catalog.clear_specifications()
        await self._fetch_lists()
        self.error = CONFLICT_MESSAGE

    async def close(self) -> None:
        self._unsubscribe()

    async def cancel(self) -> None:
        await self.store.reset()
        self.catalog.clear_items()
        self.catalog.clear_specifications()
        self.error = None

    clear_all = cancel

    async def _on_auth_changed(self, user: SessionUser | None) -> None:
        self.ctx.current_user = user
        self.ctx.http.set_session_token(user.session_token if user else None)
        if user:
            self.needs_login = False

    async def _auto_advance(self, step: int) -> None:
        selection = self._selection()
        if self.ctx.auto_advance_delay > 0:
            await asyncio.sleep(self.ctx.auto_advance_delay)
        if self._selection() != selection:
            log.info("auto-advance to step %d dropped, selection changed", step)
            return
        await self.store.set_step(step)

    # selections

    @_reloads_on_conflict
    async def choose_category(self, category_id: str, category_name: str) -> None:
        await self.store.select_category(category_id, category_name)
        self.catalog.clear_items()
        self.catalog.clear_specifications()
        self.brand_search = self.item_search = ""
        self.error = None

        committed = await self.catalog.fetch_brands(category_name)
        if committed and self.draft.category_id == category_id:
            await self._auto_advance(BRAND_STEP)

    @_reloads_on_conflict
    async def choose_brand(self, brand_id: str, brand_name: str) -> None:
        await self.store.select_brand(brand_id, brand_name)
        self.catalog.clear_items()
        self.catalog.clear_specifications()
        self.brand_search = self.item_search = ""
        self.error = None

        committed = await self.catalog.fetch_items(brand_id, self.draft.category_name)
        if committed and self.draft.brand_id == brand_id:
            await self._auto_advance(DEVICE_STEP)

    @_reloads_on_conflict
    async def choose_item(self, item_id: str, item_name: str) -> None:
        if not item_id:
            self.error = "Please select a valid item"
            return

        await self.store.select_item(item_id, item_name)
        self.catalog.clear_specifications()
        self.item_search = ""
        self.error = None

        committed = await self.catalog.fetch_specifications(item_id)
        if not committed or self.draft.item_id != item_id:
            # a newer item was picked meanwhile
            return
        if self.specifications_error:
            # stay on the device step; the view shows the fetch error
            return
        await self._auto_advance(step_after_item_loaded(self.specifications))

    @_reloads_on_conflict
    async def answer_specification(self, spec_id: str, value: str) -> None:
        # later answers are kept; they are only dropped when the item changes
        await self.store.set_spec(spec_id, value)
        target = step_after_answer(self.specifications, self.draft.specs, spec_id, self.draft.current_step)
        if target is not None:
            await self._auto_advance(target)

    def search_brands(self, query: str) -> None:
        self.brand_search = query

    def search_items(self, query: str) -> None:
        self.item_search = query

    # removing selections

    @_reloads_on_conflict
    async def remove_category(self) -> None:
        await self.store.clear_step(CATEGORY_STEP)
        self.catalog.clear_items()
        self.catalog.clear_specifications()
        self.error = None

    @_reloads_on_conflict
    async def remove_brand(self) -> None:
        await self.store.clear_step(BRAND_STEP)
        self.catalog.clear_items()
        self.catalog.clear_specifications()
        self.error = None

    @_reloads_on_conflict
    async def remove_item(self) -> None:
        await self.store.clear_step(DEVICE_STEP)
        self.catalog.clear_specifications()
        self.error = None

    @_reloads_on_conflict
    async def remove_spec(self, spec_id: str) -> None:
        """Drop one answer and return to its step."""
        idx = next((i for i, s in enumerate(self.specifications) if s.id == spec_id), None)
        step = FIRST_SPEC_STEP + idx if idx is not None else self.draft.current_step
        await self.store.drop_spec(spec_id, step=step)
        self.error = None

    @_reloads_on_conflict
    async def remove_location(self) -> None:
        await self.store.update(
            location="",
            latitude=None,
            longitude=None,
            current_step=photos_step(len(self.specifications)),
        )
        self.error = None

    @_reloads_on_conflict
    async def remove_photos(self) -> None:
        await self.store.update(images=[], current_step=photos_step(len(self.specifications)))
        self.error = None

    # navigation

    @_reloads_on_conflict
    async def next(self) -> SubmissionResult | None:
        blocked = self.specifications_error
        if blocked:
            self.error = blocked
            return None

        self.error = step_error(self.draft, self.specifications)
        if self.error:
            return None

        if self.current_step.kind is StepKind.REVIEW:
            return await self.submit()

        await self.store.set_step(self.draft.current_step + 1)
        return None

    @_reloads_on_conflict
    async def previous(self) -> None:
        if self.draft.current_step > 0:
            self.error = None
            await self.store.set_step(self.draft.current_step - 1)

    @_reloads_on_conflict
    async def go_to_step(self, step: int) -> bool:
        """Jump back to a step already reached; forward jumps are refused."""
        if step < 0 or step > self.draft.current_step:
            return False
        self.error = None
        await self.store.set_step(step)
        return True

    # photos & location

    @_reloads_on_conflict
    async def upload_images(self, uploads: Sequence[ImageUpload]) -> ImageUploadResult | None:
        result = add_images(
            self.draft.images,
            uploads,
            max_bytes=self.ctx.max_image_bytes,
            max_images=self.ctx.max_images,
        )
        if result.added:
            await self.store.update(images=result.images)
        self.error = result.error
        return result

    @_reloads_on_conflict
    async def remove_image(self, index: int) -> None:
        await self.store.update(images=remove_image(self.draft.images, index))

    @_reloads_on_conflict
    async def set_location(self, address: str, latitude: float | None = None, longitude: float | None = None) -> None:
        await self.store.update(location=address, latitude=latitude, longitude=longitude)

    @_reloads_on_conflict
    async def use_my_location(self) -> bool:
        if self.ctx.location is None:
            self.error = "Geolocation is not supported by your browser"
            return False

        self.locating = True
        self.error = None
        try:
            resolved = await self.ctx.location.fetch_location()
        except LocationError as e:
            log.info("use_my_location: %s", e.message)
            self.error = e.message
            return False
        finally:
            self.locating = False

        await self.store.update(
            location=resolved.address,
            latitude=resolved.latitude,
            longitude=resolved.longitude,
        )
        return True

    # submission

    @_reloads_on_conflict
    async def submit(self) -> SubmissionResult | None:
        blocked = self.specifications_error
        if blocked:
            self.error = blocked
            return SubmissionResult(SubmissionOutcome.FAILED, error=blocked)

        self.submitting = True
        try:
            result = await self.submission.submit(
                self.specifications,
                authenticated=self.ctx.current_user is not None,
            )
        finally:
            self.submitting = False

        self.needs_login = result.outcome is SubmissionOutcome.AUTH_REQUIRED
        self.error = result.error
        if result.ok:
            self.result = result
            self.catalog.clear_items()
            self.catalog.clear_specifications()
        return result
