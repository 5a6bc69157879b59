"""
Product reconciler.

Decides, for one Shopify product edge, whether it becomes a configurable
product with variants or a simple product, creates or updates it, and
reports what changed as a RowResult.

Row lifecycle:
    fetched → validated → configurable | simple → persisted | skipped
"""

from typing import Any, Optional
import structlog

from models.import_batch import RowOutcome, RowResult
from models.product import ProductCreate, ProductRecord, ProductType, VariantPayload
from models.scope import Scope, ScopedValueSet
from services.attribute_mapper import map_attributes, map_metafields
from services.identity_mapper import IdentityMapper
from services.image_resolver import ImageResolver
from services.run_context import RunContext
from services.variant_processor import (
    VariantProcessor,
    is_placeholder_option,
    map_variant_fields,
)
from utils.text_utils import normalize_attribute_code, normalize_sku
from exceptions import RowValidationError, VariantValidationError

logger = structlog.get_logger(__name__)


def is_active(node: dict) -> bool:
    return node.get("status") == "ACTIVE"


def option_axes(node: dict) -> list[dict]:
    """Options a product really varies on (drops the "Title: Default Title" placeholder)."""
    axes = []
    for option in node.get("options") or []:
        values = option.get("values") or []
        if any(is_placeholder_option(option.get("name"), value) for value in values):
            continue
        axes.append(option)
    return axes


def image_urls(node: dict) -> list[str]:
    urls = []
    for edge in (node.get("images") or {}).get("edges") or []:
        image = edge.get("node") or {}
        url = image.get("originalSrc") or image.get("url")
        if url:
            urls.append(url)
    return urls


class ProductReconciler:
    """
    Create-or-update of one product row.

    Usage:
        reconciler = ProductReconciler(context, product_store, mapping_store,
                                       category_store, image_resolver)
        result = reconciler.reconcile(edge)
    """

    def __init__(
        self,
        context: RunContext,
        product_store,
        mapping_store,
        category_store,
        image_resolver: ImageResolver
    ):
        self.context = context
        self.product_store = product_store
        self.category_store = category_store
        self.image_resolver = image_resolver
        self.identity_mapper = IdentityMapper(mapping_store)
        self.variant_processor = VariantProcessor(
            context, product_store, self.identity_mapper, image_resolver
        )

    # ===================
    # ENTRY POINT
    # ===================

    def reconcile(self, edge: dict) -> RowResult:
        """
        Import one product edge.

        Returns:
            RowResult with created/updated counts

        Raises:
            RowValidationError: If the row cannot be imported
            StorageError: If images cannot be stored
        """
        node = edge.get("node") or {}
        title = node.get("title")
        mapping = self.context.mapping

        product_values = map_attributes(mapping.product_fields, node, self.context)
        seo_values = map_attributes(mapping.seo_fields, node, self.context, is_seo=True)
        if product_values is None or seo_values is None:
            raise RowValidationError(
                "missing_required_value",
                f"Required value missing for product '{title}'",
                details={"handle": node.get("handle")}
            )

        metafield_edges = (node.get("metafields") or {}).get("edges")
        base = product_values.merged(seo_values, map_metafields(metafield_edges, self.context))
        base.put(Scope.COMMON, "status", "true" if is_active(node) else "false")

        categories = self.resolve_categories(node)
        axes = option_axes(node)

        if axes:
            return self._reconcile_configurable(node, axes, base, categories)
        return self._reconcile_simple(node, base, categories)

    def resolve_categories(self, node: dict) -> list[str]:
        """Collection handles that exist as PIM categories; others are dropped."""
        codes = []
        for edge in (node.get("collections") or {}).get("edges") or []:
            handle = (edge.get("node") or {}).get("handle")
            if not handle:
                continue
            category = self.category_store.find_by_code(handle)
            if category is None:
                logger.debug("category_not_found", handle=handle)
                continue
            codes.append(category["code"])
        return codes

    # ===================
    # CONFIGURABLE
    # ===================

    def _reconcile_configurable(
        self,
        node: dict,
        axes: list[dict],
        base: ScopedValueSet,
        categories: list[str]
    ) -> RowResult:
        context = self.context
        handle = node.get("handle")
        status = 1 if is_active(node) else 0

        axis_codes = [normalize_attribute_code(option.get("name")) for option in axes]
        unmapped = [code for code in axis_codes if code not in context.attributes]
        if unmapped:
            raise RowValidationError(
                "unmapped_option_axis",
                f"Attributes do not exist for product '{node.get('title')}'",
                details={"attributes": unmapped, "handle": handle}
            )

        family = context.attributes.family(context.family_id)
        if family is None:
            raise RowValidationError(
                "missing_family",
                f"Family {context.family_id} does not exist",
                details={"family_id": context.family_id, "handle": handle}
            )
        if not family.configurable_attribute_codes:
            raise RowValidationError(
                "no_configurable_attributes",
                f"Family {family.code or family.id} has no configurable attributes",
                details={"family_id": family.id, "handle": handle}
            )

        existing = self.product_store.find_by_sku(handle)
        parent = existing or self.product_store.create(ProductCreate(
            type=ProductType.CONFIGURABLE,
            sku=handle,
            status=status,
            attribute_family_id=family.id,
            super_attributes=axis_codes,
        ))

        self.identity_mapper.ensure_mapping(handle, node.get("id"), context.import_run_id)

        image_cache: dict[str, str] = {}
        parent_values = base.merged(self._mapped_images(node, parent.id, image_cache))

        variants = self.variant_processor.process(
            node, parent.id, parent_values, image_cache, status
        )

        payload = self._payload(handle, status, parent_values, categories)
        payload["variants"] = {
            key: variant.to_payload(context.channel, context.locale)
            for key, variant in variants.items()
        }
        record = self.product_store.update(payload, parent.id)
        persisted = self._update_variants(record, variants)

        created_variants = sum(1 for variant in persisted if not variant.exists)
        updated_variants = len(persisted) - created_variants

        logger.info(
            "configurable_product_imported",
            handle=handle,
            product_id=parent.id,
            created=existing is None,
            variants_created=created_variants,
            variants_updated=updated_variants
        )
        return RowResult(
            outcome=RowOutcome.PERSISTED,
            created=(0 if existing else 1) + created_variants,
            updated=(1 if existing else 0) + updated_variants,
        )

    def _update_variants(
        self,
        record: ProductRecord,
        variants: dict[str, VariantPayload]
    ) -> list[VariantPayload]:
        """
        Write each variant again by its own id, matched on SKU.

        Returns:
            The variants that were persisted under the parent
        """
        ids_by_sku = record.variant_ids_by_sku()
        persisted = []
        for variant in variants.values():
            variant_id = ids_by_sku.get(variant.sku)
            if variant_id is None:
                logger.warning("variant_not_persisted", sku=variant.sku, product_id=record.id)
                continue
            self.product_store.update(
                self._payload(variant.sku, variant.status, variant.values),
                variant_id
            )
            persisted.append(variant)
        return persisted

    # ===================
    # SIMPLE
    # ===================

    def _reconcile_simple(
        self,
        node: dict,
        base: ScopedValueSet,
        categories: list[str]
    ) -> RowResult:
        context = self.context
        handle = node.get("handle")
        status = 1 if is_active(node) else 0

        edges = (node.get("variants") or {}).get("edges") or []
        if len(edges) > 1:
            raise RowValidationError(
                "multi_variant_simple",
                f"Product '{node.get('title')}' has {len(edges)} variants but no options",
                details={"handle": handle, "variants": len(edges)}
            )
        variant = (edges[0].get("node") or {}) if edges else {}

        try:
            field_values = map_variant_fields(variant, context)
        except VariantValidationError as e:
            raise RowValidationError(e.reason, e.message, details=e.details) from e

        sku = normalize_sku(variant.get("sku")) or handle
        field_values.put(Scope.COMMON, "sku", sku)

        existing = self.product_store.find_by_sku(sku)
        self.identity_mapper.ensure_mapping(sku, node.get("id"), context.import_run_id)

        if existing is None:
            family = context.attributes.family(context.family_id)
            if family is None:
                raise RowValidationError(
                    "missing_family",
                    f"Family {context.family_id} does not exist",
                    details={"family_id": context.family_id, "handle": handle}
                )
            product = self.product_store.create(ProductCreate(
                type=ProductType.SIMPLE,
                sku=sku,
                status=status,
                attribute_family_id=family.id,
            ))
        else:
            product = existing

        images = self._mapped_images(node, product.id, {})
        variant_metafields = map_metafields((variant.get("metafields") or {}).get("edges"), context)
        values = base.merged(field_values, images).merged(variant_metafields, keep_present=True)

        self.product_store.update(self._payload(sku, status, values, categories), product.id)

        logger.info(
            "simple_product_imported",
            sku=sku,
            product_id=product.id,
            created=existing is None
        )
        return RowResult(
            outcome=RowOutcome.PERSISTED,
            created=0 if existing else 1,
            updated=1 if existing else 0,
        )

    # ===================
    # HELPERS
    # ===================

    def _mapped_images(self, node: dict, owner_id: str, cache: dict[str, str]) -> ScopedValueSet:
        image_attributes = self.context.mapping.image_attributes
        if not image_attributes:
            return ScopedValueSet()

        urls = image_urls(node)[:len(image_attributes)]
        images = self.image_resolver.process_mapped_images(
            image_attributes, urls, owner_id, cache, self.context, title=node.get("title") or ""
        )
        if images is None:
            raise RowValidationError(
                "missing_required_image",
                f"Required image missing for product '{node.get('title')}'",
                details={"handle": node.get("handle")}
            )
        return images

    def _payload(
        self,
        sku: str,
        status: int,
        values: ScopedValueSet,
        categories: Optional[list[str]] = None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "sku": sku,
            "status": status,
            "channel": self.context.channel,
            "locale": self.context.locale,
            "values": values.to_values(self.context.channel, self.context.locale),
        }
        if categories is not None:
            payload["categories"] = categories
        return payload
