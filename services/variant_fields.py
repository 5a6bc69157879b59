"""
Fixed Shopify variant fields and how each one is read.

Every member of VariantField has exactly one extractor in EXTRACTORS.
Money fields are keyed by the run currency: {"USD": "19.99"}.
"""

from enum import Enum
from typing import Any, Callable

from utils.text_utils import normalize_sku


class VariantField(str, Enum):
    """Variant node fields that can be mapped to attributes."""
    INVENTORY_POLICY = "inventoryPolicy"
    BARCODE = "barcode"
    TAXABLE = "taxable"
    COMPARE_AT_PRICE = "compareAtPrice"
    SKU = "sku"
    INVENTORY_TRACKED = "inventoryTracked"
    COST = "cost"
    WEIGHT = "weight"
    PRICE = "price"
    INVENTORY_QUANTITY = "inventoryQuantity"


def _flag(value: Any) -> str:
    return "true" if value else "false"


def _money(value: Any) -> str:
    # Money comes back either as a decimal string or as {amount, currencyCode}
    if isinstance(value, dict):
        value = value.get("amount")
    return "0" if value is None or value == "" else str(value)


def _inventory_item(node: dict) -> dict:
    return node.get("inventoryItem") or {}


def _cost(node: dict, currency: str) -> dict[str, str]:
    unit_cost = _inventory_item(node).get("unitCost")
    return {currency: _money(unit_cost)}


def _weight(node: dict, currency: str) -> str:
    measurement = _inventory_item(node).get("measurement") or {}
    weight = measurement.get("weight") or {}
    value = weight.get("value")
    return "0" if value is None else str(value)


Extractor = Callable[[dict, str], Any]

EXTRACTORS: dict[VariantField, Extractor] = {
    VariantField.INVENTORY_POLICY: lambda node, currency: _flag(node.get("inventoryPolicy") == "CONTINUE"),
    VariantField.BARCODE: lambda node, currency: node.get("barcode") or "",
    VariantField.TAXABLE: lambda node, currency: _flag(node.get("taxable")),
    VariantField.COMPARE_AT_PRICE: lambda node, currency: {currency: _money(node.get("compareAtPrice"))},
    VariantField.SKU: lambda node, currency: normalize_sku(node.get("sku")),
    VariantField.INVENTORY_TRACKED: lambda node, currency: _flag(_inventory_item(node).get("tracked")),
    VariantField.COST: _cost,
    VariantField.WEIGHT: _weight,
    VariantField.PRICE: lambda node, currency: {currency: _money(node.get("price"))},
    VariantField.INVENTORY_QUANTITY: lambda node, currency: node.get("inventoryQuantity"),
}


def extract(field: VariantField, node: dict, currency: str) -> Any:
    """Read one fixed field from a variant node."""
    return EXTRACTORS[field](node, currency)
