"""
Checklist Catalog Service.

Wraps the static CHECKLIST_DEFINITIONS in a read-only index:
  - canonical ordering of categories / subcategories / items
  - O(1) lookup item_id → (item, category, subcategory)
  - display numbering ("2.1.3" = category 2, subcategory 1, item 3)

The catalog is built once per process (``get_catalog``) and validated at
build time: a duplicated item id would make results ambiguous, so it fails
loudly instead of being tolerated.

Usage:
    from app.services.checklist_catalog import get_catalog

    catalog = get_catalog()
    loc = catalog.lookup("massa-3")
    loc.category.id        # "massa"
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Iterable

from app.models.checklist import (
    CHECKLIST_DEFINITIONS,
    ChecklistCategory,
    ChecklistItem,
    ChecklistSubCategory,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemLocation:
    """Where an item lives inside the catalog."""
    item: ChecklistItem
    category: ChecklistCategory
    sub_category: ChecklistSubCategory
    number: str


class ChecklistCatalog:
    """Immutable, indexed view over a sequence of checklist categories."""

    def __init__(self, categories: Iterable[ChecklistCategory]):
        self._categories: tuple[ChecklistCategory, ...] = tuple(categories)
        self._index: dict[str, ItemLocation] = {}
        self._category_items: dict[str, tuple[str, ...]] = {}

        category_ids: set[str] = set()
        for c_pos, category in enumerate(self._categories, start=1):
            if category.id in category_ids:
                raise ValueError(f"Duplicate checklist category id: {category.id!r}")
            category_ids.add(category.id)

            ids_in_category = []
            for s_pos, sub in enumerate(category.sub_categories, start=1):
                for i_pos, item in enumerate(sub.items, start=1):
                    if item.id in self._index:
                        raise ValueError(f"Duplicate checklist item id: {item.id!r}")
                    self._index[item.id] = ItemLocation(
                        item=item,
                        category=category,
                        sub_category=sub,
                        number=f"{c_pos}.{s_pos}.{i_pos}",
                    )
                    ids_in_category.append(item.id)
            self._category_items[category.id] = tuple(ids_in_category)

    # ── Read accessors ───────────────────────────────────────────────────

    @property
    def categories(self) -> tuple[ChecklistCategory, ...]:
        return self._categories

    @property
    def item_ids(self) -> tuple[str, ...]:
        """All item ids in display order."""
        return tuple(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._index

    def lookup(self, item_id: str) -> ItemLocation | None:
        return self._index.get(item_id)

    def category_of(self, item_id: str) -> str | None:
        loc = self._index.get(item_id)
        return loc.category.id if loc else None

    def category_item_ids(self, category_id: str) -> tuple[str, ...]:
        return self._category_items.get(category_id, ())

    def to_dict(self) -> dict:
        """Serialise with display numbering for the checklist endpoint."""
        return {
            "total_items": len(self),
            "categories": [
                {
                    "id": category.id,
                    "title": category.title,
                    "number": str(c_pos),
                    "sub_categories": [
                        {
                            "title": sub.title,
                            "number": f"{c_pos}.{s_pos}",
                            "items": [
                                {
                                    "id": item.id,
                                    "text": item.text,
                                    "number": self._index[item.id].number,
                                }
                                for item in sub.items
                            ],
                        }
                        for s_pos, sub in enumerate(category.sub_categories, start=1)
                    ],
                }
                for c_pos, category in enumerate(self._categories, start=1)
            ],
        }


@functools.lru_cache(maxsize=1)
def get_catalog() -> ChecklistCatalog:
    """Return the process-wide catalog built from CHECKLIST_DEFINITIONS."""
    catalog = ChecklistCatalog(CHECKLIST_DEFINITIONS)
    logger.info(
        "Checklist catalog loaded: %d categories, %d items",
        len(catalog.categories), len(catalog),
    )
    return catalog
