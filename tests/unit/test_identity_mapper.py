"""
Unit tests for IdentityMapper.

Run: pytest tests/unit/test_identity_mapper.py -v
"""

from models.mapping import IdentityMapping
from services.identity_mapper import IdentityMapper
from tests.conftest import FakeMappingStore


class TestEnsureMapping:
    """Tests for IdentityMapper.ensure_mapping()"""

    def test_records_missing_mapping(self):
        """Should insert a mapping for a new code."""
        # Arrange
        store = FakeMappingStore()
        mapper = IdentityMapper(store)

        # Act
        mapping = mapper.ensure_mapping(
            "TEE-1-RED", "gid://shopify/ProductVariant/9", "job-1",
            parent_external_id="gid://shopify/Product/1"
        )

        # Assert
        assert mapping.internal_code == "TEE-1-RED"
        assert mapping.parent_external_id == "gid://shopify/Product/1"
        assert store.mappings["TEE-1-RED"] is mapping

    def test_idempotent(self):
        """Should insert once however many times it is called."""
        store = FakeMappingStore()
        mapper = IdentityMapper(store)

        first = mapper.ensure_mapping("tee-1", "gid://shopify/Product/1", "job-1")
        second = mapper.ensure_mapping("tee-1", "gid://shopify/Product/1", "job-2")

        assert store.create_calls == 1
        assert second == first
        assert second.import_run_id == "job-1"

    def test_concurrent_insert_is_already_exists(self):
        """Should treat a duplicate-key failure as an existing mapping."""
        # Arrange - another batch wins the race
        store = FakeMappingStore()
        winner = IdentityMapping(
            external_id="gid://shopify/Product/1",
            internal_code="tee-1",
            import_run_id="job-0",
        )
        store.concurrent_insert = winner
        mapper = IdentityMapper(store)

        # Act
        mapping = mapper.ensure_mapping("tee-1", "gid://shopify/Product/1", "job-1")

        # Assert
        assert mapping == winner
        assert len(store.mappings) == 1
