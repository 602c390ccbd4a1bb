"""Type expressions of the ``.sme`` schema language.

A type expression is a primitive name (``uint32``, ``string``...), a
parametric type (``list[T]``, ``map[K, V]``) or a struct reference,
optionally qualified with a package (``geo.Point``).
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Union

from sme.exceptions import SchemaException
from sme.serialization.builtin import is_primitive_type

IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")


@dataclass(frozen=True)
class PrimitiveType:
    """A built-in scalar or string type."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ListType:
    """``list[element]``."""

    element: "TypeExpr"

    def __str__(self) -> str:
        return f"list[{self.element}]"


@dataclass(frozen=True)
class MapType:
    """``map[key, value]``."""

    key: "TypeExpr"
    value: "TypeExpr"

    def __str__(self) -> str:
        return f"map[{self.key}, {self.value}]"


@dataclass(frozen=True)
class StructType:
    """A reference to a user-defined struct."""

    name: str
    package: Optional[str] = None

    def qualified(self, default_package: str) -> str:
        """Get ``package.Name``, using ``default_package`` when unqualified."""
        return f"{self.package or default_package}.{self.name}"

    def __str__(self) -> str:
        if self.package:
            return f"{self.package}.{self.name}"
        return self.name


TypeExpr = Union[PrimitiveType, ListType, MapType, StructType]


def _split_top_level(text: str) -> List[str]:
    """Split on commas that are not nested inside brackets."""
    parts = []
    depth = 0
    start = 0
    for i, ch in enumerate(text):
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def parse_type_expression(text: str) -> TypeExpr:
    """Parse a type expression.

    Whitespace is ignored, so ``map[uint32, Point]`` and
    ``map[uint32,Point]`` are the same type.

    Raises:
        SchemaException: If the expression is not a valid type.
    """
    compact = "".join(text.split())
    return _parse(compact, text)


def _parse(text: str, original: str) -> TypeExpr:
    if is_primitive_type(text):
        return PrimitiveType(text)

    if text.startswith("list[") and text.endswith("]"):
        inner = text[len("list["):-1]
        if not inner:
            raise SchemaException(f"incorrect declaration of list: {original}")
        return ListType(_parse(inner, original))

    if text.startswith("map[") and text.endswith("]"):
        parts = _split_top_level(text[len("map["):-1])
        if len(parts) != 2 or not all(parts):
            raise SchemaException(f"incorrect declaration of map: {original}")
        return MapType(_parse(parts[0], original), _parse(parts[1], original))

    if text.startswith(("list", "map")) and "[" in text:
        raise SchemaException(f"incorrect declaration of {text.split('[')[0]}: {original}")

    segments = text.split(".")
    if len(segments) > 2 or not all(IDENTIFIER.match(s) for s in segments):
        raise SchemaException(f"incorrect type name: {original}")
    if len(segments) == 2:
        return StructType(segments[1], segments[0])
    return StructType(segments[0])
