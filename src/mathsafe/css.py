"""Declaration-block parsing for inline style strings.

The style filter needs two things from a CSS engine: split `"a: b; c: d"` into
property/value pairs, and join filtered pairs back into a style string. This
module wraps tinycss2 for that. The parser keeps no state between calls, so a
single instance can be shared across threads.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

import tinycss2
from tinycss2 import ast

_CAMEL_RE = re.compile(r"(?<!^)[A-Z]")


class StyleParseError(ValueError):
    """Raised when a style string is not a well-formed declaration block."""

    def __init__(self, message: str, *, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        if line is not None and column is not None:
            message = f"({line},{column}): {message}"
        super().__init__(message)


class DeclarationParser(Protocol):
    def parse(self, text: str) -> dict[str, str]: ...

    def serialize(self, declarations: Mapping[str, str]) -> str: ...


def css_property_name(name: str) -> str:
    """Map a DOM style-object name to its CSS spelling.

    `backgroundColor` -> `background-color`. Names already in CSS spelling are
    returned lower-cased.
    """

    return _CAMEL_RE.sub(lambda m: "-" + m.group(0), name).lower()


def _find_parse_error(nodes: Iterable[Any]) -> ast.ParseError | None:
    for node in nodes:
        if isinstance(node, ast.ParseError):
            return node
        if isinstance(node, ast.FunctionBlock):
            found = _find_parse_error(node.arguments)
        elif isinstance(node, (ast.ParenthesesBlock, ast.SquareBracketsBlock, ast.CurlyBracketsBlock)):
            found = _find_parse_error(node.content)
        else:
            continue
        if found is not None:
            return found
    return None


class TinycssDeclarationParser:
    """`DeclarationParser` backed by tinycss2.

    `parse()` keys the result by lower-case CSS property name. When a property
    is declared twice the last value wins, and `!important` is dropped. A
    syntax error anywhere in the block, or an at-rule inside it, fails the
    whole parse.
    """

    __slots__ = ()

    def parse(self, text: str) -> dict[str, str]:
        if not isinstance(text, str):
            raise StyleParseError(f"Style text must be a string, got {type(text).__name__}")

        declarations: dict[str, str] = {}
        for node in tinycss2.parse_declaration_list(text, skip_comments=True, skip_whitespace=True):
            if isinstance(node, ast.ParseError):
                raise StyleParseError(f"{node.kind}: {node.message}", line=node.source_line, column=node.source_column)
            if not isinstance(node, ast.Declaration):
                raise StyleParseError(
                    f"Unexpected {node.type} in declaration block", line=node.source_line, column=node.source_column
                )

            error = _find_parse_error(node.value)
            if error is not None:
                raise StyleParseError(
                    f"{error.kind}: {error.message}", line=error.source_line, column=error.source_column
                )

            value = tinycss2.serialize(node.value).strip()
            if not value:
                # An empty value is an invalid declaration; a CSS engine drops it.
                continue
            declarations[node.lower_name] = value
        return declarations

    def serialize(self, declarations: Mapping[str, str]) -> str:
        return " ".join(f"{name}: {value};" for name, value in declarations.items())
