"""
Unit tests for AttributeMetadataCache.

Run: pytest tests/unit/test_attribute_cache.py -v
"""

from services.attribute_cache import AttributeMetadataCache
from tests.conftest import FakeAttributeStore, FakeFamilyStore
from tests.factories import AttributeFactory


class TestLoad:
    """Tests for AttributeMetadataCache.load()"""

    def test_snapshots_attributes_and_families(self, attributes, family):
        """Should load every attribute and the requested families."""
        cache = AttributeMetadataCache.load(
            FakeAttributeStore(attributes), FakeFamilyStore([family]), ["4", None]
        )

        assert len(cache) == len(attributes)
        assert cache.family("4") == family
        assert cache.family(4) == family

    def test_missing_family_is_absent(self, attributes):
        cache = AttributeMetadataCache.load(FakeAttributeStore(attributes), FakeFamilyStore(), ["4"])

        assert cache.family("4") is None

    def test_store_changes_not_seen(self):
        """Should not reflect attributes added after loading."""
        store = FakeAttributeStore([AttributeFactory.create("name")])
        cache = AttributeMetadataCache.load(store, FakeFamilyStore())

        store.attributes["fit"] = AttributeFactory.create("fit")

        assert "fit" not in cache


class TestResolve:
    """Tests for AttributeMetadataCache.resolve()"""

    def test_known_and_unknown(self):
        cache = AttributeMetadataCache([AttributeFactory.create("name", per_locale=True)])

        assert cache.resolve("name").value_per_locale is True
        assert cache.resolve("fit") is None
        assert cache.resolve(None) is None
