"""Parser-side integration.

A math parser that accepts untrusted input hands a `MathAnnotator` the raw
values it meets in guarded constructs:

- TeX: `\\href`, `\\class`, `\\style`, `\\cssId`, `\\require`, the size macros,
  `\\bbox` styles and `\\mmlToken` attributes,
- MathML: the `href`, `class`, `id`, `fontsize` and `style` attributes.

The annotator runs the matching `PolicyFilter` method and returns the
attributes to put on the resulting node. Attribute dicts are never modified in
place; a new dict is returned.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .config import AllowLevel, AttributeKind
from .constants import MATHML_FILTERED_ATTRIBUTES
from .filters import DEFAULT_FILTER, PolicyFilter

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from typing import Protocol

    class ReportCallback(Protocol):
        def __call__(self, msg: str, *, attr: str | None = None) -> None: ...


_PATH_PREFIX_RE = re.compile(r".*/", re.DOTALL)
_NON_NAME_CHARS_RE = re.compile(r"[^A-Za-z0-9_.-]")


def clean_require_name(raw: str) -> str:
    """Reduce a `\\require` argument to a bare extension name.

    Everything up to the last `/` is dropped, then any character outside
    `[A-Za-z0-9_.-]`.
    """

    name = _PATH_PREFIX_RE.sub("", raw, count=1)
    return _NON_NAME_CHARS_RE.sub("", name)


def _format_em(size: float) -> str:
    size = float(size)
    if size.is_integer():
        return f"{int(size)}em"
    return f"{size!r}em"


@dataclass(frozen=True, slots=True)
class TokenAllow:
    """Which raw attributes `\\mmlToken` may set directly.

    An attribute is settable only when its kind is allowed unconditionally;
    otherwise it has to come through the filtered macros.
    """

    fontsize: bool
    id: bool
    css_class: bool
    style: bool

    def allows(self, attr: str) -> bool:
        if attr == "class":
            return self.css_class
        if attr in ("fontsize", "id", "style"):
            return bool(getattr(self, attr))
        return True


class MathAnnotator:
    __slots__ = ("_mathml_filters", "policy", "report", "token_allow")

    def __init__(self, policy: PolicyFilter = DEFAULT_FILTER, *, report: ReportCallback | None = None) -> None:
        self.policy = policy
        self.report = report

        config = policy.config
        self.token_allow = TokenAllow(
            fontsize=config.level(AttributeKind.FONT_SIZE) is AllowLevel.ALL,
            id=config.level(AttributeKind.CSS_ID) is AllowLevel.ALL,
            css_class=config.level(AttributeKind.CLASS) is AllowLevel.ALL,
            style=config.level(AttributeKind.STYLE) is AllowLevel.ALL,
        )

        filters: dict[str, Callable[[Any], Any]] = {
            "href": policy.filter_url,
            "class": policy.filter_class,
            "id": policy.filter_id,
            "fontsize": policy.filter_font_size,
            "style": policy.filter_styles,
        }
        self._mathml_filters = {name: filters[name] for name in MATHML_FILTERED_ATTRIBUTES}

    def _dropped(self, attr: str) -> None:
        if self.report is not None:
            self.report(f"Unsafe value in attribute '{attr}'", attr=attr)

    # TeX

    def href(self, attrs: Mapping[str, str], url: str) -> dict[str, str]:
        out = dict(attrs)
        filtered = self.policy.filter_url(url)
        if filtered:
            out["href"] = filtered
        else:
            self._dropped("href")
        return out

    def css_class(self, attrs: Mapping[str, str], name: str) -> dict[str, str]:
        out = dict(attrs)
        filtered = self.policy.filter_class(name)
        if not filtered:
            self._dropped("class")
            return out
        existing = out.get("class")
        out["class"] = filtered if existing is None else f"{existing} {filtered}"
        return out

    def css_id(self, attrs: Mapping[str, str], id: str) -> dict[str, str]:
        out = dict(attrs)
        filtered = self.policy.filter_id(id)
        if filtered:
            out["id"] = filtered
        else:
            self._dropped("id")
        return out

    def style(self, attrs: Mapping[str, str], styles: str) -> dict[str, str]:
        out = dict(attrs)
        filtered = self.policy.filter_styles(styles)
        if not filtered:
            self._dropped("style")
            return out
        existing = out.get("style")
        if existing is not None:
            if not filtered.endswith(";"):
                filtered += ";"
            filtered = f"{existing} {filtered}"
        out["style"] = filtered
        return out

    def bbox_style(self, styles: str) -> str | None:
        return self.policy.filter_styles(styles)

    def require(self, raw: str) -> str | None:
        """Return the extension name to load for `\\require{raw}`, or None."""

        if not isinstance(raw, str):
            return None
        name = self.policy.filter_require(clean_require_name(raw))
        if not name:
            self._dropped("require")
            return None
        return name

    def set_size(self, size: float) -> str | None:
        """Return the `mathsize` value for a size macro, or None to skip it."""

        filtered = self.policy.filter_size(size)
        if not filtered or not math.isfinite(filtered):
            return None
        return _format_em(filtered)

    # MathML

    def mathml_attribute(self, name: str, value: Any) -> Any:
        func = self._mathml_filters.get(name)
        if func is None:
            return value
        return func(value)

    def filter_mathml_attributes(self, attrs: Mapping[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for name, value in attrs.items():
            filtered = self.mathml_attribute(name, value)
            if filtered is None:
                if name in self._mathml_filters:
                    self._dropped(name)
                continue
            out[name] = filtered
        return out
