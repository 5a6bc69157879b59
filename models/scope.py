"""
Value scopes and the four-way scoped value container.

Every attribute value written to the PIM lives in exactly one of four
scopes, chosen from the attribute's (value_per_locale, value_per_channel)
flags.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from utils.text_utils import is_empty_value


class Scope(str, Enum):
    """Where an attribute value applies."""
    COMMON = "common"
    CHANNEL = "channel_specific"
    LOCALE = "locale_specific"
    CHANNEL_LOCALE = "channel_locale_specific"


@dataclass
class ScopedValueSet:
    """
    Attribute values split into the four scopes.

    put() keeps a code in a single scope: writing it to one scope removes
    it from the others.
    """

    common: dict[str, Any] = field(default_factory=dict)
    channel_specific: dict[str, Any] = field(default_factory=dict)
    locale_specific: dict[str, Any] = field(default_factory=dict)
    channel_locale_specific: dict[str, Any] = field(default_factory=dict)

    def bucket(self, scope: Scope) -> dict[str, Any]:
        return getattr(self, scope.value)

    def put(self, scope: Scope, code: str, value: Any) -> None:
        for other in Scope:
            if other is not scope:
                self.bucket(other).pop(code, None)
        self.bucket(scope)[code] = value

    def scope_of(self, code: str) -> Optional[Scope]:
        for scope in Scope:
            if code in self.bucket(scope):
                return scope
        return None

    def get(self, code: str, default: Any = None) -> Any:
        scope = self.scope_of(code)
        return self.bucket(scope)[code] if scope else default

    def items(self) -> Iterator[tuple[Scope, str, Any]]:
        for scope in Scope:
            for code, value in self.bucket(scope).items():
                yield scope, code, value

    def codes(self) -> set[str]:
        return {code for _, code, _ in self.items()}

    def __contains__(self, code: str) -> bool:
        return self.scope_of(code) is not None

    def __len__(self) -> int:
        return sum(len(self.bucket(scope)) for scope in Scope)

    def merged(self, *others: "ScopedValueSet", keep_present: bool = False) -> "ScopedValueSet":
        """
        Return a new set with others applied in order (later wins).

        Args:
            others: Sets to apply on top of this one
            keep_present: Empty values in a later set do not replace a
                value already present
        """
        result = ScopedValueSet()
        for scope, code, value in self.items():
            result.put(scope, code, value)
        for other in others:
            for scope, code, value in other.items():
                if keep_present and is_empty_value(value) and code in result:
                    continue
                result.put(scope, code, value)
        return result

    def to_values(self, channel: str, locale: str) -> dict:
        """Nest the scoped maps under the active channel and locale."""
        return {
            "common": dict(self.common),
            "channel_specific": {channel: dict(self.channel_specific)},
            "locale_specific": {locale: dict(self.locale_specific)},
            "channel_locale_specific": {
                channel: {locale: dict(self.channel_locale_specific)}
            },
        }
