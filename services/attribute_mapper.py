"""
Attribute mapper.

Turns product-level fields, SEO fields and metafields of a Shopify product
node into scoped PIM values, driven by the connector's
source field → attribute code table.
"""

from typing import Any, Optional
import structlog

from models.scope import ScopedValueSet
from services.run_context import RunContext
from services.scope_classifier import place
from utils.text_utils import is_empty_value
from exceptions import RowValidationError

logger = structlog.get_logger(__name__)

# SEO pseudo-fields → key under node["seo"]
SEO_ALIASES = {
    "metafields_global_title_tag": "title",
    "metafields_global_description_tag": "description",
}


def read_field(node: dict, source: str, is_seo: bool = False) -> Any:
    """
    Read one source field from a product node.

    List values (tags) are joined with ",".
    """
    if is_seo:
        value = (node.get("seo") or {}).get(SEO_ALIASES.get(source, source))
    else:
        value = node.get(source)

    if isinstance(value, (list, tuple)):
        value = ",".join(str(item) for item in value)
    return value


def map_attributes(
    field_map: dict[str, str],
    node: dict,
    context: RunContext,
    is_seo: bool = False
) -> Optional[ScopedValueSet]:
    """
    Map product or SEO fields to scoped values.

    Args:
        field_map: Shopify field → attribute code
        node: Shopify product node
        context: Run context (attribute lookups)
        is_seo: Read from node["seo"] using the SEO aliases

    Returns:
        ScopedValueSet, or None when a required attribute has no value
    """
    values = ScopedValueSet()

    for source, code in field_map.items():
        attribute = context.attributes.resolve(code)
        value = read_field(node, source, is_seo)

        if attribute is None:
            logger.warning(
                "attribute_not_found",
                attribute=code,
                source=source,
                title=node.get("title")
            )
        elif attribute.is_required and is_empty_value(value):
            logger.warning(
                "required_field_missing",
                attribute=code,
                source=source,
                title=node.get("title")
            )
            return None

        place(values, attribute, code, value)

    return values


def map_metafields(edges: Optional[list[dict]], context: RunContext) -> ScopedValueSet:
    """
    Map metafield edges to scoped values.

    Only keys selected on the credential are read; the key is the target
    attribute code.

    Raises:
        RowValidationError: If a selected key has no matching attribute
    """
    values = ScopedValueSet()
    selected = set(context.metafield_keys)

    for edge in edges or []:
        metafield = edge.get("node") or {}
        key = metafield.get("key")
        if key not in selected:
            continue

        attribute = context.attributes.resolve(key)
        if attribute is None:
            raise RowValidationError(
                "unmapped_metafield_key",
                f"Metafield '{key}' has no matching attribute",
                details={"key": key, "namespace": metafield.get("namespace")}
            )

        place(values, attribute, key, metafield.get("value"))

    return values
