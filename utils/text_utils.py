"""
Text utilities for turning Shopify identifiers into PIM codes.

Used for option axis names, option values, SKUs and image filenames.
"""

import os
import re
from typing import Any, Optional
from urllib.parse import urlparse

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


def normalize_attribute_code(name: Optional[str]) -> str:
    """
    Turn a Shopify option name into a PIM attribute code.

    - "Color" → "color"
    - "Shoe Size (EU)" → "shoe_size_eu_"

    Args:
        name: Option axis name as shown in Shopify

    Returns:
        Lower-case code with non-alphanumeric runs collapsed to "_"
    """
    if not name:
        return ""
    return _NON_ALNUM.sub("_", name.lower())


def normalize_option_code(value: Optional[str]) -> str:
    """
    Turn a Shopify option value into a PIM option code.

    - "Navy Blue" → "Navy-Blue"
    - " XL / Tall " → "XL-Tall"

    Args:
        value: Selected option value

    Returns:
        Code with non-alphanumeric runs collapsed to "-" and outer "-" trimmed
    """
    if not value:
        return ""
    return _NON_ALNUM.sub("-", value).strip("-")


def normalize_sku(sku: Optional[str]) -> str:
    """Remove carriage returns and line feeds pasted into Shopify SKUs."""
    if not sku:
        return ""
    return sku.replace("\r", "").replace("\n", "")


def filename_from_url(url: Optional[str]) -> str:
    """
    Derive the local filename of a remote image.

    - "https://cdn.shopify.com/s/files/1/tee.jpg?v=1700" → "tee.jpg"

    Returns:
        Basename of the URL path, query string ignored ("" for no URL)
    """
    if not url:
        return ""
    return os.path.basename(urlparse(url).path)


def is_empty_value(value: Any) -> bool:
    """
    Check whether a source value counts as missing.

    None, blank strings and empty collections are empty. Zero and False
    are real values.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False
