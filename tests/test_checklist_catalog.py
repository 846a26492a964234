"""
Checklist catalog tests.
"""

import pytest

from app.models.checklist import ChecklistCategory, ChecklistItem, ChecklistSubCategory
from app.services.checklist_catalog import ChecklistCatalog, get_catalog


def _category(cid, *subs):
    return ChecklistCategory(
        id=cid,
        title=cid,
        sub_categories=tuple(
            ChecklistSubCategory(title=f"S{n}", items=tuple(ChecklistItem(i, i) for i in ids))
            for n, ids in enumerate(subs, start=1)
        ),
    )


class TestDefaultCatalog:
    def test_item_ids_unique_and_complete(self):
        catalog = get_catalog()
        assert len(catalog) == 24
        assert len(set(catalog.item_ids)) == len(catalog.item_ids)
        assert [c.id for c in catalog.categories] == ["massa", "efluentes", "campo", "quimicos", "combustivel"]

    def test_cached(self):
        assert get_catalog() is get_catalog()

    def test_lookup(self):
        loc = get_catalog().lookup("efluentes-3")
        assert loc.category.id == "efluentes"
        assert loc.number == "2.2.1"
        assert get_catalog().lookup("nope") is None


class TestCatalogIndex:
    def test_numbering(self):
        catalog = ChecklistCatalog([_category("a", ["a1", "a2"], ["a3"]), _category("b", ["b1"])])
        assert [catalog.lookup(i).number for i in ("a1", "a2", "a3", "b1")] == ["1.1.1", "1.1.2", "1.2.1", "2.1.1"]
        assert catalog.category_item_ids("a") == ("a1", "a2", "a3")
        assert catalog.category_of("b1") == "b"
        assert "a3" in catalog and "zz" not in catalog

    def test_duplicate_item_rejected(self):
        with pytest.raises(ValueError, match="a1"):
            ChecklistCatalog([_category("a", ["a1"]), _category("b", ["a1"])])

    def test_duplicate_category_rejected(self):
        with pytest.raises(ValueError):
            ChecklistCatalog([_category("a", ["a1"]), _category("a", ["a2"])])

    def test_to_dict(self):
        data = ChecklistCatalog([_category("a", ["a1"], ["a2"])]).to_dict()
        assert data["total_items"] == 2
        sub = data["categories"][0]["sub_categories"][1]
        assert sub["number"] == "1.2"
        assert sub["items"] == [{"id": "a2", "text": "a2", "number": "1.2.1"}]
