"""Schema language support: parsing ``.sme`` files into record classes."""

from sme.schema.types import (
    PrimitiveType,
    ListType,
    MapType,
    StructType,
    parse_type_expression,
)
from sme.schema.parser import (
    FieldDecl,
    StructDecl,
    SchemaModule,
    SchemaParser,
    parse_schema,
)
from sme.schema.loader import (
    SchemaRegistry,
    load_directory,
)

__all__ = [
    "PrimitiveType",
    "ListType",
    "MapType",
    "StructType",
    "parse_type_expression",
    "FieldDecl",
    "StructDecl",
    "SchemaModule",
    "SchemaParser",
    "parse_schema",
    "SchemaRegistry",
    "load_directory",
]
