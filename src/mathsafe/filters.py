"""Attribute filters for user-authored math.

Each filter takes one raw candidate value and returns it (possibly normalized)
or `None` to reject it. Filters never raise and never log: a caller treats
`None` as "omit this attribute".

The decision for every kind is driven by its `AllowLevel`:

- NONE rejects everything,
- ALL accepts everything unchanged,
- SAFE accepts only what the safe tables (or the id prefix, or the size
  bounds) allow.
"""

from __future__ import annotations

import math
import re
from numbers import Real
from typing import Any

from .config import DEFAULT_CONFIG, AllowLevel, AttributeKind, PolicyConfig
from .constants import SAFE_ID_PREFIX
from .css import DeclarationParser, StyleParseError, TinycssDeclarationParser, css_property_name

_PROTOCOL_RE = re.compile(r"\s*([A-Za-z]+):")
_EXPRESSION_RE = re.compile(r"\s*expression")


class PolicyFilter:
    """Applies a `PolicyConfig` to attribute values.

    The filter holds no mutable state: the config is frozen and the default
    declaration parser is stateless, so one instance can serve any number of
    concurrent callers. A custom `parser` must be just as safe to share, or be
    given one instance per filter.
    """

    __slots__ = ("config", "id_prefix", "parser")

    def __init__(
        self,
        config: PolicyConfig = DEFAULT_CONFIG,
        *,
        parser: DeclarationParser | None = None,
        id_prefix: str = SAFE_ID_PREFIX,
    ) -> None:
        self.config = config
        self.parser: DeclarationParser = parser if parser is not None else TinycssDeclarationParser()
        self.id_prefix = id_prefix

    def __repr__(self) -> str:
        levels = ", ".join(f"{kind.value}={level.value}" for kind, level in self.config.allow.items())
        return f"<PolicyFilter {levels}>"

    # URLs

    def filter_url(self, url: Any) -> str | None:
        if not isinstance(url, str):
            return None
        level = self.config.level(AttributeKind.URL)
        if level is AllowLevel.NONE:
            return None
        if level is AllowLevel.ALL:
            return url

        # No scheme (a relative URL) looks up "", which is never in the table.
        m = _PROTOCOL_RE.match(url)
        protocol = m.group(1).lower() if m else ""
        if not self.config.safe_protocols.get(protocol, False):
            return None
        return url

    # Class names and ids

    def _filter_name(self, kind: AttributeKind, name: Any) -> str | None:
        if not isinstance(name, str):
            return None
        level = self.config.level(kind)
        if level is AllowLevel.NONE:
            return None
        if level is AllowLevel.ALL:
            return name
        return name if name.startswith(self.id_prefix) else None

    def filter_class(self, name: Any) -> str | None:
        return self._filter_name(AttributeKind.CLASS, name)

    def filter_id(self, id: Any) -> str | None:
        return self._filter_name(AttributeKind.CSS_ID, id)

    # Styles

    def filter_styles(self, styles: Any) -> str | None:
        """Filter an inline style string.

        In SAFE mode the result is rebuilt from the allowed declarations only,
        so it is never the raw input. A style string that cannot be parsed is
        rejected as a whole.
        """

        if not isinstance(styles, str):
            return None
        level = self.config.level(AttributeKind.STYLE)
        if level is AllowLevel.NONE:
            return None
        if level is AllowLevel.ALL:
            return styles

        try:
            declared = self.parser.parse(styles)
        except StyleParseError:
            return None

        kept: dict[str, str] = {}
        for name in self.config.safe_styles:
            prop = css_property_name(name)
            value = self.filter_style(name, declared.get(prop))
            if value is not None:
                kept[prop] = value
        return self.parser.serialize(kept)

    def filter_style(self, name: str, value: Any) -> str | None:
        """Filter one declaration. `name` is a `safe_styles` key."""

        if not isinstance(value, str):
            return None
        if _EXPRESSION_RE.match(value):
            return None
        # Substring match on purpose: "javascript:" is refused wherever it shows up.
        if "javascript:" in value:
            return None
        return value if self.config.safe_styles.get(name, False) else None

    # Font sizes

    def filter_size(self, size: Any) -> float | None:
        """Filter a font size (in em) set by a size macro. SAFE clamps it."""

        if isinstance(size, bool) or not isinstance(size, Real):
            return None
        level = self.config.level(AttributeKind.FONT_SIZE)
        if level is AllowLevel.NONE:
            return None
        if level is AllowLevel.ALL:
            return size
        if math.isnan(size):
            return None
        return min(max(size, self.config.size_min), self.config.size_max)

    def filter_font_size(self, size: Any) -> Any:
        """Filter a font size given directly as an attribute. Only ALL lets it through."""

        if self.config.level(AttributeKind.FONT_SIZE) is AllowLevel.ALL:
            return size
        return None

    # Extensions

    def filter_require(self, name: Any) -> str | None:
        if not isinstance(name, str):
            return None
        level = self.config.level(AttributeKind.REQUIRE)
        if level is AllowLevel.NONE:
            return None
        if level is AllowLevel.ALL:
            return name
        return name if self.config.safe_require.get(name.lower(), False) else None


DEFAULT_FILTER: PolicyFilter = PolicyFilter()
