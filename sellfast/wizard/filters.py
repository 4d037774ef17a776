from __future__ import annotations

from typing import Mapping, Sequence, TypeVar

from sellfast.wizard.catalog import CatalogItem

T = TypeVar("T")


def search_filter(entries: Sequence[T], query: str | None) -> list[T]:
    """Case-insensitive substring match on `name`."""
    q = (query or "").strip().lower()
    if not q:
        return list(entries)
    return [e for e in entries if q in getattr(e, "name", "").lower()]


def filter_items(
    items: Sequence[CatalogItem],
    *,
    category_id: str | None = None,
    specs: Mapping[str, str] | None = None,
) -> list[CatalogItem]:
    """
    Narrow items to those compatible with the answers chosen so far.

    An item survives when it carries every answered specification and, for
    select specifications, the answer is one of its options.
    """
    filtered = list(items)

    if category_id:
        filtered = [i for i in filtered if i.category_id in (None, category_id)]

    if not specs:
        return filtered

    def compatible(item: CatalogItem) -> bool:
        by_id = {s.id: s for s in item.specifications}
        for spec_id, value in specs.items():
            spec = by_id.get(spec_id)
            if spec is None:
                return False
            if spec.value_type == "select" and value not in spec.options:
                return False
        return True

    return [i for i in filtered if compatible(i)]
