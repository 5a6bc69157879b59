"""
Scope classification.

The single place that decides which of the four value scopes an attribute
value belongs to. Product fields, SEO fields, metafields, images, variant
fields and options all go through classify().

    value_per_locale  value_per_channel  scope
    ----------------  -----------------  -----------------------
    False             False              common
    True              False              locale_specific
    False             True               channel_specific
    True              True               channel_locale_specific
"""

from typing import Any, Optional

from models.attribute import AttributeDefinition
from models.scope import Scope, ScopedValueSet


def classify(attribute: Optional[AttributeDefinition]) -> Scope:
    """
    Get the scope for an attribute.

    Unknown attributes (None) are treated as global and land in common.
    """
    if attribute is None:
        return Scope.COMMON

    per_locale = attribute.value_per_locale
    per_channel = attribute.value_per_channel

    if per_locale and per_channel:
        return Scope.CHANNEL_LOCALE
    if per_locale:
        return Scope.LOCALE
    if per_channel:
        return Scope.CHANNEL
    return Scope.COMMON


def place(
    values: ScopedValueSet,
    attribute: Optional[AttributeDefinition],
    code: str,
    value: Any
) -> Scope:
    """Write value under code in the attribute's scope; returns that scope."""
    scope = classify(attribute)
    values.put(scope, code, value)
    return scope
