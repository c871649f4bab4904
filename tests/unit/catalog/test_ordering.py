"""Unit tests for catalog.ordering."""

import datetime

import pytest

from uacloudlib.catalog.ordering import order_by, order_keys
from uacloudlib.models import Category, NamespaceDescriptor, NodesetSummary, Organisation


def _namespace(identifier, title="", published=None, downloads=0):
    return NamespaceDescriptor(
        nodeset=NodesetSummary(identifier, publication_date=published),
        title=title,
        number_of_downloads=downloads,
    )


class TestOrderKeys:
    def test_namespace_keys(self):
        keys = order_keys(NamespaceDescriptor)
        assert "title" in keys
        assert "numberOfDownloads" in keys
        assert "publicationDate" in keys

    def test_category_keys(self):
        assert order_keys(Category) == ("name", "description", "iconUrl")


class TestOrderBy:
    """Descending multi-key sort over one page."""

    @pytest.mark.parametrize("key", [None, "", "   "])
    def test_no_key_keeps_order(self, key):
        items = [_namespace(2, "b"), _namespace(1, "a")]
        assert order_by(items, key, NamespaceDescriptor) == items

    def test_unknown_key_keeps_order(self, caplog):
        items = [_namespace(1, "a"), _namespace(2, "b")]
        assert order_by(items, "colour", NamespaceDescriptor) == items
        assert any(r.getMessage() == "order_key_unknown" for r in caplog.records)

    def test_keys_are_case_sensitive(self):
        items = [_namespace(1, "a"), _namespace(2, "b")]
        assert order_by(items, "Title", NamespaceDescriptor) == items

    def test_descending_by_title(self):
        items = [_namespace(1, "Alpha"), _namespace(2, "Gamma"), _namespace(3, "Beta")]
        ordered = order_by(items, "title", NamespaceDescriptor)
        assert [n.title for n in ordered] == ["Gamma", "Beta", "Alpha"]

    def test_tie_break_by_title_then_identifier(self):
        items = [_namespace(1, "A", downloads=5), _namespace(2, "A", downloads=5),
                 _namespace(3, "B", downloads=5)]
        ordered = order_by(items, "numberOfDownloads", NamespaceDescriptor)
        assert [n.identifier for n in ordered] == [3, 2, 1]

    def test_unset_dates_sort_last(self):
        early = datetime.datetime(2020, 1, 1, tzinfo=datetime.UTC)
        late = datetime.datetime(2023, 1, 1, tzinfo=datetime.UTC)
        items = [_namespace(1, published=None), _namespace(2, published=early),
                 _namespace(3, published=late)]
        ordered = order_by(items, "publicationDate", NamespaceDescriptor)
        assert [n.identifier for n in ordered] == [3, 2, 1]

    def test_does_not_mutate_input(self):
        items = [_namespace(1, "a"), _namespace(2, "b")]
        order_by(items, "title", NamespaceDescriptor)
        assert [n.identifier for n in items] == [1, 2]

    def test_categories_tie_break_on_description(self):
        items = [Category("A", "x"), Category("A", "z"), Category("B", "y")]
        ordered = order_by(items, "name", Category)
        assert ordered == [Category("B", "y"), Category("A", "z"), Category("A", "x")]

    def test_organisations_unset_urls_last(self):
        items = [Organisation("A", website=None), Organisation("B", website="https://b.org")]
        ordered = order_by(items, "website", Organisation)
        assert [o.name for o in ordered] == ["B", "A"]
