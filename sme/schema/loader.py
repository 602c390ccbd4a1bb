"""Builds record classes from parsed ``.sme`` schemas.

Structs are created in dependency order, so every nested struct exists
before the struct that embeds it. Structs may reference each other across
files and packages, but not recursively.
"""

import os
import threading
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from sme.exceptions import IllegalArgumentException, InvalidValueError, SchemaException
from sme.logging import get_logger
from sme.schema.parser import FieldDecl, SchemaModule, StructDecl, parse_schema
from sme.schema.types import ListType, MapType, PrimitiveType, StructType, TypeExpr
from sme.serialization.api import FieldCodec
from sme.serialization.builtin import ListCodec, MapCodec, RecordCodec, get_builtin_codecs
from sme.serialization.record import Field, Record
from sme.serialization.stream import BufferSink

SCHEMA_FILE_SUFFIX = ".sme"

_logger = get_logger("schema")

_RESERVED_NAMES = frozenset(name for name in dir(Record) if not name.startswith("__"))


def _struct_refs(type_expr: TypeExpr) -> Iterator[StructType]:
    if isinstance(type_expr, StructType):
        yield type_expr
    elif isinstance(type_expr, ListType):
        yield from _struct_refs(type_expr.element)
    elif isinstance(type_expr, MapType):
        yield from _struct_refs(type_expr.key)
        yield from _struct_refs(type_expr.value)


class SchemaRegistry:
    """Registry of record classes built from schema files.

    Types are addressed by their qualified name, ``package.Struct``.

    Example:
        >>> registry = SchemaRegistry()
        >>> registry.load_directory("schemas/")
        >>> Example = registry.get("example.ExampleClass1")
        >>> payload = Example(field1=4).to_bytes()
    """

    def __init__(self):
        self._types: Dict[str, type] = {}
        self._modules: List[SchemaModule] = []
        self._codecs = get_builtin_codecs()
        self._lock = threading.Lock()

    def get(self, qualified_name: str) -> Optional[type]:
        """Get a record class by qualified name, or None."""
        return self._types.get(qualified_name)

    def __getitem__(self, qualified_name: str) -> type:
        return self._types[qualified_name]

    def __contains__(self, qualified_name: object) -> bool:
        return qualified_name in self._types

    def __len__(self) -> int:
        return len(self._types)

    def names(self) -> List[str]:
        """Get all registered qualified names, sorted."""
        return sorted(self._types)

    @property
    def modules(self) -> List[SchemaModule]:
        """Get every schema module registered so far."""
        return list(self._modules)

    def add_schema(self, text: str, source: str = "<string>") -> List[type]:
        """Parse schema text and register its structs.

        Returns:
            The record classes created, in dependency order.
        """
        return self.register(parse_schema(text, source))

    def load_file(self, path: str) -> List[type]:
        """Parse and register one schema file."""
        return self.register(self._parse_file(Path(path)))

    def load_directory(self, path: str) -> List[type]:
        """Parse every ``.sme`` file below ``path`` and register them together.

        Files are read in sorted path order. References between files of the
        directory are resolved as one batch.

        Raises:
            SchemaException: If the directory does not exist or any schema
                is invalid.
        """
        root = Path(path)
        if not root.is_dir():
            raise SchemaException(f"schema directory does not exist: {path}")
        files = sorted(p for p in root.rglob(f"*{SCHEMA_FILE_SUFFIX}") if p.is_file())
        if not files:
            _logger.warning("No %s files found in %s", SCHEMA_FILE_SUFFIX, path)
        modules = [self._parse_file(p) for p in files]
        created = self.register(*modules)
        _logger.info(
            "Loaded %d record types from %d schema files in %s",
            len(created),
            len(files),
            path,
        )
        return created

    @staticmethod
    def _parse_file(path: Path) -> SchemaModule:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise SchemaException(f"cannot read schema file: {e}", str(path), cause=e)
        _logger.debug("Parsing schema file %s", path)
        return parse_schema(text, source=str(path))

    def register(self, *modules: SchemaModule) -> List[type]:
        """Resolve and build the structs of one or more parsed modules.

        Either every struct of the batch is registered or none is.
        """
        with self._lock:
            declared = self._collect(modules)
            order = self._dependency_order(declared)
            built: Dict[str, type] = {}
            for qualified in order:
                module, struct = declared[qualified]
                built[qualified] = self._build_class(module, struct, built)
            self._types.update(built)
            self._modules.extend(modules)
        return [built[name] for name in order]

    def _collect(
        self, modules: Iterable[SchemaModule]
    ) -> Dict[str, Tuple[SchemaModule, StructDecl]]:
        declared: Dict[str, Tuple[SchemaModule, StructDecl]] = {}
        for module in modules:
            for struct in module.structs:
                qualified = f"{module.package}.{struct.name}"
                if qualified in self._types or qualified in declared:
                    raise SchemaException(
                        f"struct already exists: {qualified}", module.source, struct.line
                    )
                declared[qualified] = (module, struct)
        return declared

    def _dependency_order(
        self, declared: Dict[str, Tuple[SchemaModule, StructDecl]]
    ) -> List[str]:
        order: List[str] = []
        done = set()
        visiting: List[str] = []

        def visit(qualified: str) -> None:
            if qualified in done:
                return
            if qualified in visiting:
                cycle = visiting[visiting.index(qualified):] + [qualified]
                module, struct = declared[qualified]
                raise SchemaException(
                    f"recursive struct reference: {' -> '.join(cycle)}",
                    module.source,
                    struct.line,
                )
            visiting.append(qualified)
            module, struct = declared[qualified]
            for decl in struct.fields:
                for ref in _struct_refs(decl.type):
                    target = ref.qualified(module.package)
                    if target in declared:
                        visit(target)
                    elif target not in self._types:
                        raise SchemaException(
                            f"unknown type: {ref}", module.source, decl.line, decl.column
                        )
            visiting.pop()
            done.add(qualified)
            order.append(qualified)

        for qualified in declared:
            visit(qualified)
        return order

    def _build_class(
        self, module: SchemaModule, struct: StructDecl, built: Dict[str, type]
    ) -> type:
        qualified = f"{module.package}.{struct.name}"
        namespace = {
            "type_name": qualified,
            "__module__": __name__,
            "__qualname__": struct.name,
            "__doc__": f"Record type {qualified} from {module.source}.",
        }
        for decl in struct.fields:
            if decl.name in _RESERVED_NAMES:
                raise SchemaException(
                    f"field name is reserved: {decl.name}",
                    module.source,
                    decl.line,
                    decl.column,
                )
            namespace[decl.name] = self._build_field(module, decl, built)
        record_type = type(struct.name, (Record,), namespace)
        _logger.debug("Built record type %s with %d fields", qualified, len(struct.fields))
        return record_type

    def _build_field(
        self, module: SchemaModule, decl: FieldDecl, built: Dict[str, type]
    ) -> Field:
        try:
            codec = self._codec_for(decl.type, module.package, built)
        except IllegalArgumentException as e:
            raise SchemaException(str(e), module.source, decl.line, decl.column, cause=e)
        if not decl.has_default:
            return Field(codec)
        if not isinstance(decl.type, PrimitiveType):
            raise SchemaException(
                f"default values are only supported for primitive fields: {decl.name}",
                module.source,
                decl.line,
                decl.column,
            )
        try:
            default = codec.from_plain(decl.default)
            codec.write(BufferSink(), default)
        except (ValueError, InvalidValueError) as e:
            raise SchemaException(
                f"incorrect data type for default value: {decl.default}",
                module.source,
                decl.line,
                decl.column,
                cause=e,
            )
        return Field(codec, default=default)

    def _codec_for(
        self, type_expr: TypeExpr, package: str, built: Dict[str, type]
    ) -> FieldCodec:
        if isinstance(type_expr, PrimitiveType):
            return self._codecs[type_expr.name]
        if isinstance(type_expr, ListType):
            return ListCodec(self._codec_for(type_expr.element, package, built))
        if isinstance(type_expr, MapType):
            return MapCodec(
                self._codec_for(type_expr.key, package, built),
                self._codec_for(type_expr.value, package, built),
            )
        qualified = type_expr.qualified(package)
        record_type = built.get(qualified) or self._types[qualified]
        return RecordCodec(record_type)


def load_directory(path: str) -> SchemaRegistry:
    """Create a registry holding every schema found below ``path``."""
    registry = SchemaRegistry()
    registry.load_directory(os.fspath(path))
    return registry
