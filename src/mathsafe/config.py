"""Policy configuration.

A `PolicyConfig` is built once, before the first filter call, and is only read
afterwards. `build_config()` merges caller overrides onto the defaults:

- `allow` is merged per attribute kind,
- each safe table is merged per entry (so a single protocol can be switched
  off without restating the rest),
- the size bounds are replaced.

Override keys may use the Python spelling (`safe_protocols`) or the MathJax
spelling (`safeProtocols`). Unknown keys are ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .constants import SAFE_PROTOCOLS, SAFE_REQUIRE, SAFE_STYLES, SIZE_MAX, SIZE_MIN
from .css import css_property_name

logger = logging.getLogger(__name__)


class _StrEnum(str, Enum):
    """Backport of enum.StrEnum (Python 3.11+).

    We support Python 3.10+, so we use this small mixin instead.
    """


class AllowLevel(_StrEnum):
    ALL = "all"
    SAFE = "safe"
    NONE = "none"


class AttributeKind(_StrEnum):
    URL = "url"
    CLASS = "class"
    CSS_ID = "css_id"
    STYLE = "style"
    FONT_SIZE = "font_size"
    REQUIRE = "require"


_LEVEL_NAMES: dict[str, AllowLevel] = {level.value: level for level in AllowLevel}

_KIND_NAMES: dict[str, AttributeKind] = {kind.value: kind for kind in AttributeKind}
# MathJax configuration names.
_KIND_NAMES.update(
    {
        "URLs": AttributeKind.URL,
        "classes": AttributeKind.CLASS,
        "cssIDs": AttributeKind.CSS_ID,
        "styles": AttributeKind.STYLE,
        "fontsize": AttributeKind.FONT_SIZE,
    }
)

DEFAULT_ALLOW: dict[AttributeKind, AllowLevel] = {
    AttributeKind.URL: AllowLevel.SAFE,
    AttributeKind.CLASS: AllowLevel.SAFE,
    AttributeKind.CSS_ID: AllowLevel.SAFE,
    AttributeKind.STYLE: AllowLevel.SAFE,
    AttributeKind.FONT_SIZE: AllowLevel.ALL,
    AttributeKind.REQUIRE: AllowLevel.SAFE,
}


def _coerce_level(value: Any) -> AllowLevel:
    # Only the exact names "all" and "none" are special; anything else,
    # including "ALL", behaves as "safe".
    if isinstance(value, AllowLevel):
        return value
    if isinstance(value, str):
        return _LEVEL_NAMES.get(value, AllowLevel.SAFE)
    return AllowLevel.SAFE


def _coerce_kind(key: Any) -> AttributeKind | None:
    if isinstance(key, AttributeKind):
        return key
    if isinstance(key, str):
        return _KIND_NAMES.get(key)
    return None


def _normalize_table(table: Mapping[str, Any], *, lower: bool) -> dict[str, bool]:
    out: dict[str, bool] = {}
    for name, enabled in table.items():
        key = str(name)
        out[key.lower() if lower else key] = bool(enabled)
    return out


@dataclass(frozen=True, slots=True)
class PolicyConfig:
    """Immutable snapshot of the filtering policy.

    Inputs are normalized on construction:

    - `allow` is completed with the default level for any missing kind, and
      level names are mapped to `AllowLevel` (only the exact names "all" and
      "none" are special, anything else means SAFE),
    - protocol and extension names are lower-cased,
    - every `safe_styles` entry naming font-size (`fontSize`, `font-size`, ...)
      is forced off unless font sizes are allowed unconditionally, so a style
      string can never get around the size clamp.

    All mappings are exposed read-only.
    """

    allow: Mapping[Any, Any] = field(default_factory=lambda: dict(DEFAULT_ALLOW))
    size_min: float = SIZE_MIN
    size_max: float = SIZE_MAX
    safe_protocols: Mapping[str, bool] = field(default_factory=lambda: dict(SAFE_PROTOCOLS))
    safe_styles: Mapping[str, bool] = field(default_factory=lambda: dict(SAFE_STYLES))
    safe_require: Mapping[str, bool] = field(default_factory=lambda: dict(SAFE_REQUIRE))

    def __post_init__(self) -> None:
        allow = dict(DEFAULT_ALLOW)
        for key, level in self.allow.items():
            kind = _coerce_kind(key)
            if kind is None:
                logger.debug("Ignoring unknown attribute kind %r in allow settings", key)
                continue
            allow[kind] = _coerce_level(level)
        object.__setattr__(self, "allow", MappingProxyType(allow))

        object.__setattr__(self, "size_min", float(self.size_min))
        object.__setattr__(self, "size_max", float(self.size_max))

        styles = _normalize_table(self.safe_styles, lower=False)
        if allow[AttributeKind.FONT_SIZE] is not AllowLevel.ALL:
            styles["fontSize"] = False
            for name in styles:
                if css_property_name(name) == "font-size":
                    styles[name] = False

        object.__setattr__(self, "safe_styles", MappingProxyType(styles))
        object.__setattr__(
            self, "safe_protocols", MappingProxyType(_normalize_table(self.safe_protocols, lower=True))
        )
        object.__setattr__(self, "safe_require", MappingProxyType(_normalize_table(self.safe_require, lower=True)))

    def level(self, kind: AttributeKind) -> AllowLevel:
        return self.allow[kind]


DEFAULT_CONFIG: PolicyConfig = PolicyConfig()

_OPTION_NAMES = {
    "allow": "allow",
    "size_min": "size_min",
    "sizeMin": "size_min",
    "size_max": "size_max",
    "sizeMax": "size_max",
    "safe_protocols": "safe_protocols",
    "safeProtocols": "safe_protocols",
    "safe_styles": "safe_styles",
    "safeStyles": "safe_styles",
    "safe_require": "safe_require",
    "safeRequire": "safe_require",
}

_MERGED_OPTIONS = frozenset({"allow", "safe_protocols", "safe_styles", "safe_require"})


def build_config(overrides: Mapping[str, Any] | None = None, *, base: PolicyConfig = DEFAULT_CONFIG) -> PolicyConfig:
    """Return `base` with `overrides` merged in.

    `overrides` has the same shape as the MathJax `Safe` configuration block:

        build_config({"allow": {"URLs": "none"}, "safeProtocols": {"ftp": True}})

    Mapping-valued options are merged entry by entry; the size bounds are
    replaced. Unknown options are ignored, as are mapping options given a
    non-mapping value.
    """

    if overrides is None:
        return base
    if not isinstance(overrides, Mapping):
        raise TypeError(f"Policy overrides must be a mapping, got {type(overrides).__name__}")

    options: dict[str, Any] = {
        "allow": dict(base.allow),
        "size_min": base.size_min,
        "size_max": base.size_max,
        "safe_protocols": dict(base.safe_protocols),
        "safe_styles": dict(base.safe_styles),
        "safe_require": dict(base.safe_require),
    }

    for key, value in overrides.items():
        name = _OPTION_NAMES.get(key)
        if name is None:
            logger.debug("Ignoring unknown policy option %r", key)
            continue
        if name in _MERGED_OPTIONS:
            if not isinstance(value, Mapping):
                logger.debug("Ignoring policy option %r: expected a mapping, got %s", key, type(value).__name__)
                continue
            options[name].update(value)
        else:
            options[name] = value

    return PolicyConfig(**options)
