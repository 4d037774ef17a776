from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, TypeVar

from opentelemetry import trace
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from sellfast.wizard.transport import HttpClient, HttpResult

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

VALUE_TYPES = ("select", "text", "number", "textarea")


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class CatalogCategory(_WireModel):
    id: str
    name: str
    description: str | None = None
    icon: str | None = None


class CatalogBrand(_WireModel):
    id: str
    name: str
    icon: str | None = None


class CategorySpecification(_WireModel):
    id: str
    name: str
    value_type: str = "text"
    options: list[str] = Field(default_factory=list)
    is_required: bool = False
    order: int | None = None

    @field_validator("value_type", mode="before")
    @classmethod
    def _known_value_type(cls, v: Any) -> str:
        return v if v in VALUE_TYPES else "text"

    @field_validator("options", mode="before")
    @classmethod
    def _decode_options(cls, v: Any) -> list[str]:
        # stored as a JSON-encoded string array
        if v is None or v == "":
            return []
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError:
                return []
        if not isinstance(v, list):
            return []
        return [str(o) for o in v]


class CatalogItem(_WireModel):
    id: str
    name: str
    category_id: str | None = None
    specifications: list[CategorySpecification] = Field(default_factory=list)


def ordered_specifications(specs: Iterable[CategorySpecification]) -> list[CategorySpecification]:
    """Configured display order first; unordered specifications keep their relative order."""
    indexed = list(enumerate(specs))
    indexed.sort(key=lambda p: (p[1].order is None, p[1].order if p[1].order is not None else 0, p[0]))
    return [s for _, s in indexed]


T = TypeVar("T")


@dataclass
class FetchState(Generic[T]):
    items: list[T] = field(default_factory=list)
    loading: bool = False
    error: str | None = None

    # bumped per request; responses carrying an older token are dropped
    token: int = 0


def _invalidate(state: FetchState) -> None:
    # an in-flight response for this kind becomes stale
    state.token += 1
    state.items = []
    state.loading = False
    state.error = None


class CatalogFetchers:
    """
    One-shot loaders for the wizard's reference lists.

    Each fetch replaces its list on success and empties it on failure, setting
    `error` to a user-facing message. Nothing is cached or retried. Each
    method returns False when its response was discarded because a newer
    request of the same kind was issued meanwhile.
    """

    def __init__(self, http: HttpClient):
        self._http = http
        self.categories: FetchState[CatalogCategory] = FetchState()
        self.brands: FetchState[CatalogBrand] = FetchState()
        self.items: FetchState[CatalogItem] = FetchState()
        self.specifications: FetchState[CategorySpecification] = FetchState()

    async def _run(
        self,
        state: FetchState,
        *,
        kind: str,
        path: str,
        params: dict[str, str] | None,
        parse: Callable[[HttpResult], list],
        failure_message: str,
        empty_message: str | None = None,
    ) -> bool:
        state.token += 1
        token = state.token
        state.loading = True
        state.error = None

        with tracer.start_as_current_span(f"catalog.{kind}") as span:
            span.set_attribute("catalog.token", token)
            result = await self._http.get_json(path, params=params)
            if result.status_code is not None:
                span.set_attribute("http.status_code", result.status_code)
            stale = token != state.token
            span.set_attribute("catalog.stale", stale)

        if stale:
            log.info("%s: discarding stale response (token %d < %d)", kind, token, state.token)
            return False

        state.loading = False
        if not result.ok:
            log.warning("%s: request failed (%s)", kind, result.error_code)
            state.items = []
            # transport failures carry no server message
            server_msg = result.server_error if result.status_code else None
            state.error = server_msg or failure_message
            return True

        try:
            items = parse(result)
        except (ValidationError, TypeError, KeyError) as e:
            log.warning("%s: unexpected response shape: %s", kind, e)
            state.items = []
            state.error = failure_message
            return True

        state.items = items
        state.error = empty_message if (not items and empty_message) else None
        log.info("%s: loaded %d", kind, len(items))
        return True

    async def fetch_categories(self) -> bool:
        def parse(r: HttpResult) -> list[CatalogCategory]:
            raw = r.detail.get("categories")
            return [CatalogCategory.model_validate(c) for c in raw] if isinstance(raw, list) else []

        return await self._run(
            self.categories,
            kind="categories",
            path="/api/categories",
            params=None,
            parse=parse,
            failure_message="Failed to fetch categories",
            empty_message="No categories available. Please add categories in the admin panel.",
        )

    async def fetch_brands(self, category_name: str | None) -> bool:
        def parse(r: HttpResult) -> list[CatalogBrand]:
            raw = r.data
            return [CatalogBrand.model_validate(b) for b in raw] if isinstance(raw, list) else []

        label = category_name or "all"
        return await self._run(
            self.brands,
            kind="brands",
            path="/api/companies",
            params={"category": label},
            parse=parse,
            failure_message="Failed to fetch companies",
            empty_message=f"No companies available for {label}. Please add companies and items in the admin panel.",
        )

    async def fetch_items(self, brand_id: str, category_name: str | None = None) -> bool:
        def parse(r: HttpResult) -> list[CatalogItem]:
            raw = r.data
            return [CatalogItem.model_validate(i) for i in raw] if isinstance(raw, list) else []

        params = {"companyId": brand_id}
        if category_name:
            params["category"] = category_name
        suffix = f" in {category_name}" if category_name else ""
        return await self._run(
            self.items,
            kind="items",
            path="/api/items",
            params=params,
            parse=parse,
            failure_message="Failed to fetch items",
            empty_message=f"No items available for this brand{suffix}.",
        )

    async def fetch_specifications(self, item_id: str) -> bool:
        if not item_id:
            self.specifications.items = []
            self.specifications.error = "Item ID is required to fetch specifications"
            return True

        def parse(r: HttpResult) -> list[CategorySpecification]:
            item = CatalogItem.model_validate(r.detail)
            return ordered_specifications(item.specifications)

        return await self._run(
            self.specifications,
            kind="specifications",
            path="/api/items",
            params={"itemId": item_id},
            parse=parse,
            failure_message="Error loading specifications. Please try again.",
        )

    def clear_items(self) -> None:
        _invalidate(self.items)

    def clear_specifications(self) -> None:
        _invalidate(self.specifications)
