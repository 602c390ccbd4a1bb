"""Built-in codecs for the SME field kinds.

This module provides codecs for every field kind a record can declare:
fixed-width scalars, length-prefixed strings, lists, maps and nested
records.

Wire layout:
    - Scalars: raw fixed-width bytes, no prefix.
    - Strings: ``uint32`` byte length, then the bytes.
    - Lists: ``uint32`` element count, then the elements.
    - Maps: ``uint32`` pair count, then key and value of each pair.
    - Nested records: the record's own fields, no prefix and no tag.

Supported scalar names:
    int8, int16, int32, int64, uint8 (and its alias byte), uint16, uint32,
    uint64, float (32-bit), double (64-bit), bool, char.
"""

import math
import struct
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

from sme.config import CodecConfig
from sme.exceptions import (
    IllegalArgumentException,
    InvalidValueError,
    MalformedInputError,
)
from sme.serialization.api import ByteSink, ByteSource, FieldCodec, UINT32_SIZE


def _check_fits(source: ByteSource, needed: int, what: str) -> None:
    """Reject a declared size that cannot fit in the known remaining input.

    Only active in strict mode and only for sources that know their size.
    """
    if not source.config.strict:
        return
    remaining = source.remaining()
    if remaining is not None and needed > remaining:
        raise MalformedInputError(
            f"Declared {what} needs at least {needed} bytes at offset "
            f"{source.position()}, but only {remaining} remain"
        )


class ScalarCodec(FieldCodec[Any]):
    """Base class for fixed-width scalar codecs."""

    def __init__(self, name: str, size: int):
        self._name = name
        self._size = size

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        """Get the encoded width in bytes."""
        return self._size

    @property
    def min_size(self) -> int:
        return self._size

    def size_of(self, value: Any, config: Optional[CodecConfig] = None) -> int:
        return self._size


class IntegerCodec(ScalarCodec):
    """Codec for signed and unsigned fixed-width integers.

    Note:
        Python integers have arbitrary precision; values outside the
        kind's range raise :class:`InvalidValueError` on write.
    """

    def __init__(self, name: str, bits: int, signed: bool):
        super().__init__(name, bits // 8)
        self._signed = signed
        if signed:
            self._min = -(1 << (bits - 1))
            self._max = (1 << (bits - 1)) - 1
        else:
            self._min = 0
            self._max = (1 << bits) - 1
        suffix = f"int{bits}" if signed else f"uint{bits}"
        self._writer = f"write_{suffix}"
        self._reader = f"read_{suffix}"

    @property
    def signed(self) -> bool:
        return self._signed

    def write(self, sink: ByteSink, value: int) -> None:
        if not isinstance(value, int):
            raise InvalidValueError(
                f"{self._name} field expects an int, got {type(value).__name__}"
            )
        if value < self._min or value > self._max:
            raise InvalidValueError(
                f"{value} is out of range for {self._name} "
                f"[{self._min}, {self._max}]"
            )
        getattr(sink, self._writer)(value)

    def read(self, source: ByteSource) -> int:
        return getattr(source, self._reader)()

    def default(self) -> int:
        return 0

    def from_plain(self, data: Any) -> int:
        if isinstance(data, bool):
            raise InvalidValueError(f"{self._name} field expects an int, got bool")
        if isinstance(data, float):
            if not data.is_integer():
                raise InvalidValueError(
                    f"{self._name} field expects an integral value, got {data!r}"
                )
            return int(data)
        try:
            return int(data)
        except (TypeError, ValueError) as e:
            raise InvalidValueError(
                f"{self._name} field expects an int, got {data!r}", cause=e
            )


def _narrow_float32(value: float) -> float:
    """Round ``value`` to the nearest float32, as it reads back off the wire."""
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except (struct.error, OverflowError) as e:
        raise InvalidValueError(f"{value!r} does not fit a 32-bit float", cause=e)


class FloatCodec(ScalarCodec):
    """Codec for 32-bit (``float``) and 64-bit (``double``) floats.

    A 32-bit field only accepts values a float32 holds exactly, so a
    written value always reads back equal. :meth:`from_plain` rounds to
    the nearest float32 first.
    """

    def __init__(self, name: str, bits: int):
        super().__init__(name, bits // 8)
        self._double = bits == 64

    def write(self, sink: ByteSink, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidValueError(
                f"{self._name} field expects a number, got {type(value).__name__}"
            )
        if self._double:
            sink.write_double(value)
            return
        if not math.isnan(value) and _narrow_float32(value) != value:
            raise InvalidValueError(
                f"{value!r} is not exactly representable as a 32-bit float; "
                f"use {_narrow_float32(value)!r}"
            )
        sink.write_float(value)

    def read(self, source: ByteSource) -> float:
        if self._double:
            return source.read_double()
        return source.read_float()

    def default(self) -> float:
        return 0.0

    def from_plain(self, data: Any) -> float:
        if isinstance(data, bool):
            raise InvalidValueError(f"{self._name} field expects a number, got bool")
        try:
            value = float(data)
        except (TypeError, ValueError) as e:
            raise InvalidValueError(
                f"{self._name} field expects a number, got {data!r}", cause=e
            )
        if self._double or math.isnan(value):
            return value
        return _narrow_float32(value)


class BoolCodec(ScalarCodec):
    """Codec for booleans, one byte holding 0 or 1.

    Any non-zero byte reads back as True.
    """

    def __init__(self):
        super().__init__("bool", 1)

    def write(self, sink: ByteSink, value: bool) -> None:
        if not isinstance(value, int):
            raise InvalidValueError(
                f"bool field expects a bool, got {type(value).__name__}"
            )
        sink.write_bool(value)

    def read(self, source: ByteSource) -> bool:
        return source.read_bool()

    def default(self) -> bool:
        return False

    def from_plain(self, data: Any) -> bool:
        if isinstance(data, str):
            lowered = data.strip().lower()
            if lowered in ("true", "1"):
                return True
            if lowered in ("false", "0"):
                return False
            raise InvalidValueError(f"Not a boolean: {data!r}")
        if not isinstance(data, int):
            raise InvalidValueError(f"Not a boolean: {data!r}")
        return bool(data)


class CharCodec(ScalarCodec):
    """Codec for single characters, one Latin-1 byte."""

    def __init__(self):
        super().__init__("char", 1)

    def write(self, sink: ByteSink, value: str) -> None:
        if not isinstance(value, str) or len(value) != 1 or ord(value) > 0xFF:
            raise InvalidValueError(
                f"char field expects a single Latin-1 character, got {value!r}"
            )
        sink.write_uint8(ord(value))

    def read(self, source: ByteSource) -> str:
        return chr(source.read_uint8())

    def default(self) -> str:
        return "\x00"


class StringCodec(FieldCodec[str]):
    """Codec for length-prefixed strings.

    The payload is treated as opaque bytes. ``str`` values are encoded with
    the configured encoding; decoding uses ``surrogateescape`` so that any
    byte sequence reads back without validation and re-encodes to the same
    bytes. ``bytes`` values are written as they are.
    """

    @property
    def name(self) -> str:
        return "string"

    @property
    def min_size(self) -> int:
        return UINT32_SIZE

    @staticmethod
    def _encode(value: Any, config: CodecConfig) -> bytes:
        if isinstance(value, str):
            return value.encode(config.string_encoding, "surrogateescape")
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        raise InvalidValueError(
            f"string field expects str or bytes, got {type(value).__name__}"
        )

    def write(self, sink: ByteSink, value: str) -> None:
        data = self._encode(value, sink.config)
        sink.write_count(len(data))
        sink.write_bytes(data)

    def read(self, source: ByteSource) -> str:
        length = source.read_count()
        _check_fits(source, length, "string length")
        data = source.read_bytes(length)
        return data.decode(source.config.string_encoding, "surrogateescape")

    def default(self) -> str:
        return ""

    def size_of(self, value: str, config: Optional[CodecConfig] = None) -> int:
        return UINT32_SIZE + len(self._encode(value, config or CodecConfig()))

    def from_plain(self, data: Any) -> str:
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        return str(data)


class ListCodec(FieldCodec[list]):
    """Codec for homogeneous, count-prefixed lists.

    Scalar lists and record lists share this algorithm; only the element
    codec differs.
    """

    def __init__(self, element: FieldCodec):
        self._element = element

    @property
    def element(self) -> FieldCodec:
        return self._element

    @property
    def name(self) -> str:
        return f"list[{self._element.name}]"

    @property
    def min_size(self) -> int:
        return UINT32_SIZE

    def write(self, sink: ByteSink, value: list) -> None:
        if isinstance(value, (str, bytes, Mapping)):
            raise InvalidValueError(
                f"{self.name} field expects a list, got {type(value).__name__}"
            )
        try:
            items = list(value)
        except TypeError as e:
            raise InvalidValueError(
                f"{self.name} field expects a list, got {type(value).__name__}",
                cause=e,
            )
        sink.write_count(len(items))
        for item in items:
            self._element.write(sink, item)

    def read(self, source: ByteSource) -> list:
        count = source.read_count()
        _check_fits(source, count * self._element.min_size, "list count")
        result = []
        for _ in range(count):
            result.append(self._element.read(source))
        return result

    def default(self) -> list:
        return []

    def size_of(self, value: list, config: Optional[CodecConfig] = None) -> int:
        return UINT32_SIZE + sum(self._element.size_of(item, config) for item in value)

    def to_plain(self, value: list) -> list:
        return [self._element.to_plain(item) for item in value]

    def from_plain(self, data: Any) -> list:
        if data is None:
            return []
        if not isinstance(data, (list, tuple)):
            raise InvalidValueError(
                f"{self.name} field expects a list, got {type(data).__name__}"
            )
        return [self._element.from_plain(item) for item in data]


class MapCodec(FieldCodec[dict]):
    """Codec for count-prefixed key/value maps.

    Writes accept a ``dict`` or an iterable of ``(key, value)`` pairs; the
    latter can hold the same key twice. Reads insert pairs in wire order,
    so a repeated key keeps the value of its last pair.
    """

    def __init__(self, key: FieldCodec, value: FieldCodec):
        if not isinstance(key, (ScalarCodec, StringCodec)):
            raise IllegalArgumentException(
                f"Map keys must be scalar or string kinds, got {key.name}"
            )
        self._key = key
        self._value = value

    @property
    def key(self) -> FieldCodec:
        return self._key

    @property
    def value(self) -> FieldCodec:
        return self._value

    @property
    def name(self) -> str:
        return f"map[{self._key.name}, {self._value.name}]"

    @property
    def min_size(self) -> int:
        return UINT32_SIZE

    @staticmethod
    def _pairs(value: Any) -> List[Tuple[Any, Any]]:
        if isinstance(value, Mapping):
            return list(value.items())
        if isinstance(value, (str, bytes)):
            raise InvalidValueError(f"Map field expects a mapping, got {value!r}")
        pairs = []
        try:
            for pair in value:
                if len(pair) != 2:
                    raise InvalidValueError(f"Map entries must be pairs, got {pair!r}")
                pairs.append((pair[0], pair[1]))
        except TypeError as e:
            raise InvalidValueError(
                f"Map field expects a mapping or (key, value) pairs, got {value!r}",
                cause=e,
            )
        return pairs

    def write(self, sink: ByteSink, value: Any) -> None:
        pairs = self._pairs(value)
        if sink.config.sort_map_keys:
            pairs.sort(key=lambda pair: pair[0])
        sink.write_count(len(pairs))
        for k, v in pairs:
            self._key.write(sink, k)
            self._value.write(sink, v)

    def read(self, source: ByteSource) -> dict:
        count = source.read_count()
        pair_size = self._key.min_size + self._value.min_size
        _check_fits(source, count * pair_size, "map count")
        result: Dict[Any, Any] = {}
        for _ in range(count):
            k = self._key.read(source)
            result[k] = self._value.read(source)
        return result

    def default(self) -> dict:
        return {}

    def size_of(self, value: Any, config: Optional[CodecConfig] = None) -> int:
        return UINT32_SIZE + sum(
            self._key.size_of(k, config) + self._value.size_of(v, config)
            for k, v in self._pairs(value)
        )

    def to_plain(self, value: Any) -> dict:
        return {
            self._key.to_plain(k): self._value.to_plain(v)
            for k, v in self._pairs(value)
        }

    def from_plain(self, data: Any) -> dict:
        if data is None:
            return {}
        return {
            self._key.from_plain(k): self._value.from_plain(v)
            for k, v in self._pairs(data)
        }


class RecordCodec(FieldCodec[Any]):
    """Codec for a nested record of one statically known type.

    The record is written in place through its own ``write_data`` and read
    back into a fresh default-constructed instance.
    """

    def __init__(self, record_type: type):
        self._record_type = record_type

    @property
    def record_type(self) -> type:
        return self._record_type

    @property
    def name(self) -> str:
        return getattr(self._record_type, "type_name", self._record_type.__name__)

    @property
    def min_size(self) -> int:
        return self._record_type.min_encoded_size()

    def write(self, sink: ByteSink, value: Any) -> None:
        if not isinstance(value, self._record_type):
            raise InvalidValueError(
                f"Field expects {self.name}, got {type(value).__name__}"
            )
        value.write_data(sink)

    def read(self, source: ByteSource) -> Any:
        record = self._record_type()
        record.read_data(source)
        return record

    def default(self) -> Any:
        return self._record_type()

    def size_of(self, value: Any, config: Optional[CodecConfig] = None) -> int:
        return value.encoded_size(config)

    def to_plain(self, value: Any) -> dict:
        return value.to_dict()

    def from_plain(self, data: Any) -> Any:
        if isinstance(data, self._record_type):
            return data
        return self._record_type.from_dict(data or {})


INT8 = IntegerCodec("int8", 8, signed=True)
INT16 = IntegerCodec("int16", 16, signed=True)
INT32 = IntegerCodec("int32", 32, signed=True)
INT64 = IntegerCodec("int64", 64, signed=True)
UINT8 = IntegerCodec("uint8", 8, signed=False)
UINT16 = IntegerCodec("uint16", 16, signed=False)
UINT32 = IntegerCodec("uint32", 32, signed=False)
UINT64 = IntegerCodec("uint64", 64, signed=False)
FLOAT = FloatCodec("float", 32)
DOUBLE = FloatCodec("double", 64)
BOOL = BoolCodec()
CHAR = CharCodec()
STRING = StringCodec()

_PRIMITIVE_CODECS: Dict[str, FieldCodec] = {
    "int8": INT8,
    "int16": INT16,
    "int32": INT32,
    "int64": INT64,
    "uint8": UINT8,
    "byte": UINT8,
    "uint16": UINT16,
    "uint32": UINT32,
    "uint64": UINT64,
    "float": FLOAT,
    "double": DOUBLE,
    "bool": BOOL,
    "char": CHAR,
    "string": STRING,
}


def get_builtin_codecs() -> Dict[str, FieldCodec]:
    """Get the mapping of primitive type names to their codecs."""
    return dict(_PRIMITIVE_CODECS)


def is_primitive_type(type_name: str) -> bool:
    """Check whether a schema type name is a built-in primitive."""
    return type_name in _PRIMITIVE_CODECS
