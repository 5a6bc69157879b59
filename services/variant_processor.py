"""
Variant processor.

Turns the variant edges of one configurable Shopify product into variant
payloads nested under the parent write. A bad variant is skipped with a
warning; its siblings are still imported.
"""

from typing import Optional
import structlog

from models.attribute import AttributeDefinition
from models.product import VariantPayload
from models.scope import Scope, ScopedValueSet
from services.attribute_mapper import map_metafields
from services.identity_mapper import IdentityMapper
from services.image_resolver import ImageResolver
from services.run_context import RunContext
from services.scope_classifier import place
from services.variant_fields import VariantField, extract
from utils.text_utils import (
    is_empty_value,
    normalize_attribute_code,
    normalize_option_code,
    normalize_sku,
)
from exceptions import VariantValidationError

logger = structlog.get_logger(__name__)

PLACEHOLDER_OPTION_NAME = "Title"
PLACEHOLDER_OPTION_VALUE = "Default Title"


def is_placeholder_option(name: Optional[str], value: Optional[str]) -> bool:
    """Shopify's single "Title: Default Title" option on products without options."""
    return name == PLACEHOLDER_OPTION_NAME and value == PLACEHOLDER_OPTION_VALUE


def map_variant_fields(node: dict, context: RunContext) -> ScopedValueSet:
    """
    Map the fixed variant fields configured in the mapping table.

    Raises:
        VariantValidationError: If a required attribute gets no value
    """
    values = ScopedValueSet()

    for source, code in context.mapping.variant_fields.items():
        attribute = context.attributes.resolve(code)
        value = extract(VariantField(source), node, context.currency)

        if attribute is not None and attribute.is_required and is_empty_value(value):
            raise VariantValidationError(
                f"missing_required_{normalize_attribute_code(source)}",
                f"{code} is required",
                details={"sku": node.get("sku"), "attribute": code}
            )

        place(values, attribute, code, value)

    return values


def resolve_options(node: dict, context: RunContext) -> ScopedValueSet:
    """
    Map selected options to option codes.

    Raises:
        VariantValidationError: If an option value is not allowed by its attribute
    """
    values = ScopedValueSet()

    for option in node.get("selectedOptions") or []:
        name = option.get("name")
        value = option.get("value")
        if is_placeholder_option(name, value):
            continue

        code = normalize_attribute_code(name)
        attribute: Optional[AttributeDefinition] = context.attributes.resolve(code)
        option_code = attribute.find_option(normalize_option_code(value)) if attribute else None

        if option_code is None:
            raise VariantValidationError(
                "unknown_option",
                f"{name} - {value}: option not found",
                details={"sku": node.get("sku"), "attribute": code, "option": value}
            )

        place(values, attribute, code, option_code)

    return values


class VariantProcessor:
    """
    Builds variant payloads for one configurable product.

    Handles:
    - SKU normalization and duplicate detection
    - Identity mappings for variants
    - Option and fixed-field values
    - Variant images and metafields
    """

    def __init__(
        self,
        context: RunContext,
        product_store,
        identity_mapper: IdentityMapper,
        image_resolver: ImageResolver
    ):
        self.context = context
        self.product_store = product_store
        self.identity_mapper = identity_mapper
        self.image_resolver = image_resolver

    def process(
        self,
        product_node: dict,
        parent_id: str,
        parent_values: ScopedValueSet,
        image_cache: dict[str, str],
        status: int
    ) -> dict[str, VariantPayload]:
        """
        Process every variant of a product, in source order.

        Args:
            product_node: Shopify product node
            parent_id: Configurable parent id (image owner for new variants)
            parent_values: Parent values, used to blank inherited images
            image_cache: Filename → reference for this product
            status: 1 or 0 from the product status

        Returns:
            Variant key (existing id or "variant_<index>") → VariantPayload.
            Empty when no variant survived.
        """
        processed: dict[str, VariantPayload] = {}
        seen_skus: set[str] = set()
        edges = (product_node.get("variants") or {}).get("edges") or []

        for index, edge in enumerate(edges):
            node = edge.get("node") or {}
            sku = normalize_sku(node.get("sku"))

            try:
                if not sku:
                    raise VariantValidationError(
                        "empty_sku",
                        "Variant has no SKU",
                        details={"variant_id": node.get("id")}
                    )
                if sku in seen_skus:
                    raise VariantValidationError(
                        "duplicate_sku",
                        f"{sku}: duplicate SKU found in product",
                        details={"sku": sku}
                    )
                seen_skus.add(sku)

                key, payload = self._process_variant(
                    index, node, sku, product_node, parent_id, parent_values, image_cache, status
                )
            except VariantValidationError as e:
                logger.warning(
                    "variant_skipped",
                    reason=e.reason,
                    message=e.message,
                    sku=sku or None,
                    title=product_node.get("title")
                )
                continue

            processed[key] = payload

        logger.debug(
            "variants_processed",
            handle=product_node.get("handle"),
            received=len(edges),
            kept=len(processed)
        )
        return processed

    def _process_variant(
        self,
        index: int,
        node: dict,
        sku: str,
        product_node: dict,
        parent_id: str,
        parent_values: ScopedValueSet,
        image_cache: dict[str, str],
        status: int
    ) -> tuple[str, VariantPayload]:
        context = self.context

        self.identity_mapper.ensure_mapping(
            sku,
            node.get("id"),
            context.import_run_id,
            parent_external_id=product_node.get("id"),
        )
        existing = self.product_store.find_by_sku(sku)

        values = resolve_options(node, context).merged(map_variant_fields(node, context))
        values.put(Scope.COMMON, "sku", sku)

        # Product-level images stay on the parent
        for code in context.mapping.image_attributes:
            scope = parent_values.scope_of(code)
            if scope is not None:
                values.put(scope, code, "")

        image_code = context.mapping.variant_image_attribute
        if image_code:
            owner_id = existing.id if existing else parent_id
            image = node.get("image") or {}
            image_url = image.get("originalSrc") or image.get("url")
            reference = self.image_resolver.resolve_variant_image(
                image_url, owner_id, image_code, image_cache
            )
            attribute = context.attributes.resolve(image_code)
            if not reference and attribute is not None and attribute.is_required:
                raise VariantValidationError(
                    "missing_required_image",
                    f"{image_code} is required",
                    details={"sku": sku, "attribute": image_code}
                )
            if reference:
                place(values, attribute, image_code, reference)

        metafield_edges = (node.get("metafields") or {}).get("edges")
        values = values.merged(map_metafields(metafield_edges, context))

        key = existing.id if existing else f"variant_{index}"
        return key, VariantPayload(
            sku=sku,
            status=status,
            values=values,
            exists=existing is not None,
        )
