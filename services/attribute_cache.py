"""
Run-scoped snapshot of attribute and family definitions.

Loaded once when a run starts; every mapper resolves attributes through
AttributeMetadataCache.resolve() instead of querying the store per value.
"""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional
import structlog

from models.attribute import AttributeDefinition, AttributeFamily

logger = structlog.get_logger(__name__)


class AttributeMetadataCache:
    """
    Read-only attribute and family lookups.

    Usage:
        cache = AttributeMetadataCache.load(attribute_store, family_store, ["4"])
        color = cache.resolve("color")
    """

    def __init__(
        self,
        attributes: Iterable[AttributeDefinition] = (),
        families: Iterable[AttributeFamily] = ()
    ):
        self._attributes: Mapping[str, AttributeDefinition] = MappingProxyType(
            {attribute.code: attribute for attribute in attributes}
        )
        self._families: Mapping[str, AttributeFamily] = MappingProxyType(
            {family.id: family for family in families}
        )

    @classmethod
    def load(cls, attribute_store, family_store, family_ids: Iterable[str] = ()) -> "AttributeMetadataCache":
        """
        Snapshot the attribute store and the given families.

        Args:
            attribute_store: Store with all() -> list[AttributeDefinition]
            family_store: Store with find_by_id(id) -> AttributeFamily | None
            family_ids: Families the run may create products in

        Returns:
            Loaded cache (missing families are simply absent)
        """
        attributes = attribute_store.all()
        families = []
        for family_id in family_ids:
            if not family_id:
                continue
            family = family_store.find_by_id(str(family_id))
            if family is not None:
                families.append(family)

        logger.info(
            "attribute_metadata_loaded",
            attributes=len(attributes),
            families=len(families)
        )
        return cls(attributes, families)

    def resolve(self, code: Optional[str]) -> Optional[AttributeDefinition]:
        """Get an attribute definition, or None when the code is unknown."""
        if not code:
            return None
        return self._attributes.get(code)

    def family(self, family_id: Optional[str]) -> Optional[AttributeFamily]:
        """Get a loaded family by id."""
        if family_id is None:
            return None
        return self._families.get(str(family_id))

    def __contains__(self, code: str) -> bool:
        return code in self._attributes

    def __len__(self) -> int:
        return len(self._attributes)
