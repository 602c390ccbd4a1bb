"""Parser for ``.sme`` schema files.

A schema file declares a syntax version, one package and any number of
structs::

    syntax 1.0.0
    package example

    // a nested struct
    struct NestedStruct {
        uint32 field1
        int64 field2
        double field3, field4 = 4.8
    }

    struct ExampleClass1 {
        string field5 = "abacaba"
        list[uint32] field6
        NestedStruct field7
        map[uint32, NestedStruct] field10
    }

The parser is line based: each non-blank line is handled by the function
of the current parser state, which returns the next state.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from sme.exceptions import SchemaException
from sme.schema.types import IDENTIFIER, PrimitiveType, TypeExpr, parse_type_expression

SYNTAX_VERSION = re.compile(r"[0-9]+\.[0-9]+\.[0-9]+\Z")


class ParserState(Enum):
    """What the parser expects on the next non-blank line."""
    SYNTAX = "syntax version declaration"
    PACKAGE = "package declaration"
    STRUCT_NAME = "struct declaration"
    STRUCT_BODY = "struct field declaration"


@dataclass
class FieldDecl:
    """One declared field. ``default`` holds the unparsed default text."""

    name: str
    type: TypeExpr
    default: Optional[str] = None
    line: int = 0
    column: int = 0

    @property
    def has_default(self) -> bool:
        return self.default is not None


@dataclass
class StructDecl:
    """One declared struct with its fields in declaration order."""

    name: str
    fields: List[FieldDecl] = field(default_factory=list)
    line: int = 0

    def get_field(self, name: str) -> Optional[FieldDecl]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass
class SchemaModule:
    """The parsed content of one schema file."""

    syntax_version: str
    package: str
    structs: List[StructDecl] = field(default_factory=list)
    source: str = "<string>"

    def get_struct(self, name: str) -> Optional[StructDecl]:
        for s in self.structs:
            if s.name == name:
                return s
        return None


def strip_comment(line: str) -> str:
    """Remove a ``//`` comment that is not inside a string literal."""
    quoted = False
    for i, ch in enumerate(line):
        if ch == '"':
            quoted = not quoted
        elif not quoted and line.startswith("//", i):
            return line[:i]
    return line


class SchemaParser:
    """Parses the text of one ``.sme`` file into a :class:`SchemaModule`."""

    def __init__(self, source: str = "<string>"):
        self._source = source
        self._state = ParserState.SYNTAX
        self._line = 0
        self._syntax_version: Optional[str] = None
        self._package: Optional[str] = None
        self._structs: List[StructDecl] = []
        self._current: Optional[StructDecl] = None
        self._handlers = {
            ParserState.SYNTAX: self._read_syntax_version,
            ParserState.PACKAGE: self._read_package_name,
            ParserState.STRUCT_NAME: self._read_struct_name,
            ParserState.STRUCT_BODY: self._read_struct_body,
        }

    def _error(self, message: str, column: int = 0) -> SchemaException:
        return SchemaException(message, self._source, self._line, column)

    def parse(self, text: str) -> SchemaModule:
        """Parse a whole schema text.

        Raises:
            SchemaException: On the first syntax error.
        """
        for number, raw in enumerate(text.splitlines(), start=1):
            self._line = number
            line = strip_comment(raw).rstrip()
            stripped = line.lstrip()
            if not stripped:
                continue
            indent = len(line) - len(stripped)
            self._state = self._handlers[self._state](stripped, indent)

        if self._state is ParserState.STRUCT_BODY:
            raise SchemaException(
                f"unterminated struct: {self._current.name}",
                self._source,
                self._current.line,
            )
        if self._state in (ParserState.SYNTAX, ParserState.PACKAGE):
            raise SchemaException(
                f"expected {self._state.value}, but got: end of file", self._source
            )

        return SchemaModule(
            syntax_version=self._syntax_version,
            package=self._package,
            structs=self._structs,
            source=self._source,
        )

    @staticmethod
    def _split_keyword(line: str) -> Tuple[str, str, int]:
        """Split ``keyword argument``; the offset locates the argument."""
        parts = line.split(None, 1)
        argument = parts[1] if len(parts) > 1 else ""
        return parts[0], argument, len(line) - len(argument)

    def _read_syntax_version(self, line: str, indent: int) -> ParserState:
        keyword, version, offset = self._split_keyword(line)
        if keyword != "syntax":
            raise self._error(f"expected: 'syntax' keyword, got: {keyword}", indent)
        if not version:
            raise self._error("expected: syntax version, got: end of line", indent)
        if not SYNTAX_VERSION.match(version):
            raise self._error(
                f"incorrect syntax version specified: {version}", indent + offset
            )
        self._syntax_version = version
        return ParserState.PACKAGE

    def _read_package_name(self, line: str, indent: int) -> ParserState:
        keyword, name, offset = self._split_keyword(line)
        if keyword != "package":
            raise self._error(f"expected 'package' keyword, got: {keyword}", indent)
        if not IDENTIFIER.match(name):
            raise self._error(
                f"incorrect format of package name: {name}", indent + offset
            )
        self._package = name
        return ParserState.STRUCT_NAME

    def _read_struct_name(self, line: str, indent: int) -> ParserState:
        match = re.match(r"(\S+)\s*([^\s{]*)\s*(\{?)\s*(.*)\Z", line)
        keyword, name, brace, rest = match.groups()
        if keyword != "struct":
            raise self._error(f"expected 'struct' keyword, got: {keyword}", indent)
        column = indent + line.find(name, len("struct")) if name else indent + len(line)
        if not name:
            raise self._error("expected struct name", column)
        if not IDENTIFIER.match(name):
            raise self._error(f"incorrect name of struct: {name}", column)
        if not brace:
            raise self._error("expected opening curly brace", column + len(name))
        if any(s.name == name for s in self._structs):
            raise self._error(f"struct already exists: {name}", column)

        struct = StructDecl(name=name, line=self._line)
        self._structs.append(struct)
        if rest == "}":
            return ParserState.STRUCT_NAME
        if rest:
            raise self._error(
                f"unexpected text after opening curly brace: {rest}",
                indent + line.index("{") + 1,
            )
        self._current = struct
        return ParserState.STRUCT_BODY

    def _read_struct_body(self, line: str, indent: int) -> ParserState:
        if line == "}":
            self._current = None
            return ParserState.STRUCT_NAME
        for decl in self._parse_field_declarations(line, indent):
            if self._current.get_field(decl.name) is not None:
                raise self._error(
                    f"field with this name was already declared in this struct: "
                    f"{decl.name}",
                    decl.column,
                )
            self._current.fields.append(decl)
        return ParserState.STRUCT_BODY

    def _parse_field_declarations(self, line: str, indent: int) -> List[FieldDecl]:
        first_word = line.split()[0]
        if first_word == "optional":
            raise self._error("optional fields are not supported", indent)

        type_text, pos = self._read_type_name(line, indent)
        try:
            type_expr = parse_type_expression(type_text)
        except SchemaException as e:
            raise self._error(e.description, indent)

        rest = line[pos:]
        if not rest.strip():
            raise self._error("expected field name, but got: end of line", indent + pos)

        result = []
        for segment, offset in self._split_declarations(rest, indent + pos):
            column = indent + pos + offset + (len(segment) - len(segment.lstrip()))
            name_part, sep, default_part = segment.partition("=")
            name = name_part.strip()
            if not name:
                raise self._error("expected field name", column)
            if name[0].isdigit():
                raise self._error("field name can not start with a number", column)
            if not IDENTIFIER.match(name):
                raise self._error(f"incorrect field name: {name}", column)
            default = None
            if sep:
                default = self._parse_default(default_part.strip(), type_expr, column)
            result.append(
                FieldDecl(
                    name=name,
                    type=type_expr,
                    default=default,
                    line=self._line,
                    column=column,
                )
            )
        return result

    def _read_type_name(self, line: str, indent: int) -> Tuple[str, int]:
        depth = 0
        pos = 0
        while pos < len(line):
            ch = line[pos]
            if ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth < 0:
                    raise self._error("unexpected closing bracket", indent + pos)
            elif ch.isspace() and depth == 0:
                break
            pos += 1
        if depth != 0:
            raise self._error(
                "expected closing bracket, but got: end of line", indent + pos
            )
        return line[:pos], pos

    def _split_declarations(self, text: str, column: int) -> List[Tuple[str, int]]:
        parts = []
        start = 0
        quoted = False
        for i, ch in enumerate(text):
            if ch == '"':
                quoted = not quoted
            elif ch == "," and not quoted:
                parts.append((text[start:i], start))
                start = i + 1
        if quoted:
            raise self._error("expected closing quotes, but got: end of line", column + len(text))
        parts.append((text[start:], start))
        return parts

    def _parse_default(self, text: str, type_expr: TypeExpr, column: int) -> str:
        if not text:
            raise self._error(
                "expected default value declaration for value, but got: end of line",
                column,
            )
        if text == "null":
            raise self._error(
                "non-optional types cannot hold null as default value", column
            )
        if type_expr == PrimitiveType("string"):
            if len(text) < 2 or not (text.startswith('"') and text.endswith('"')):
                raise self._error(
                    "expected quoted string default value", column
                )
            return text[1:-1]
        if len(text.split()) != 1:
            raise self._error(f"incorrect default value: {text}", column)
        return text


def parse_schema(text: str, source: str = "<string>") -> SchemaModule:
    """Parse schema text into a :class:`SchemaModule`."""
    return SchemaParser(source).parse(text)
