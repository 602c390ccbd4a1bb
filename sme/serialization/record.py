"""Declarative records and the recursive record codec.

A record is an ordered set of typed fields. Declaration order is the wire
order: fields carry no tags, so writer and reader must agree on the exact
field list.

Example:
    Declaring and round-tripping a record::

        from sme.serialization.builtin import DOUBLE, INT64, UINT32, ListCodec
        from sme.serialization.record import Field, Record

        class Sample(Record):
            id = Field(UINT32)
            offset = Field(INT64)
            values = Field(ListCodec(DOUBLE))

        sample = Sample(id=4, offset=-6, values=[1.5, 4.8])
        assert Sample.from_bytes(sample.to_bytes()) == sample
"""

import copy
from typing import Any, Dict, Optional, Tuple

from sme.config import CodecConfig
from sme.exceptions import IllegalArgumentException, MalformedInputError
from sme.serialization.api import ByteSink, ByteSource, FieldCodec, SmeSerializable
from sme.serialization.builtin import RecordCodec
from sme.serialization.stream import BufferSink, BufferSource

_MISSING = object()


class Field:
    """A typed field declaration on a :class:`Record` subclass.

    Args:
        codec: The codec of the field kind. A record class may be passed
            directly and is wrapped in a :class:`RecordCodec`.
        default: Value given to new instances. Mutable defaults are
            copied per instance. Defaults to the codec's zero value.
    """

    def __init__(self, codec: Any, default: Any = _MISSING):
        if isinstance(codec, type) and issubclass(codec, SmeSerializable):
            codec = RecordCodec(codec)
        if not isinstance(codec, FieldCodec):
            raise IllegalArgumentException(
                f"Field codec must be a FieldCodec or record class, got {codec!r}"
            )
        self.codec = codec
        self.name: Optional[str] = None
        self._default = default

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    @property
    def has_default(self) -> bool:
        """Whether an explicit default was declared."""
        return self._default is not _MISSING

    def default(self) -> Any:
        """Get a fresh default value for a new instance."""
        if self._default is _MISSING:
            return self.codec.default()
        return copy.deepcopy(self._default)

    def __repr__(self) -> str:
        return f"Field({self.name!r}, {self.codec.name})"


def encode_record(sink: ByteSink, record: "Record") -> None:
    """Write every field of ``record`` in declaration order."""
    for field in record.fields():
        field.codec.write(sink, getattr(record, field.name))


def decode_record(source: ByteSource, record: Any) -> "Record":
    """Overwrite every field of ``record`` from ``source``, in declaration order.

    ``record`` may also be a record class, in which case a new instance is
    decoded. On failure the record is left partially overwritten.
    """
    if isinstance(record, type):
        record = record()
    for field in record.fields():
        setattr(record, field.name, field.codec.read(source))
    return record


def ensure_consumed(source: ByteSource) -> None:
    """In strict mode, reject input that continues past the record."""
    if not source.config.strict:
        return
    remaining = source.remaining()
    if remaining:
        raise MalformedInputError(
            f"{remaining} trailing bytes after record at offset {source.position()}"
        )


class Record(SmeSerializable):
    """Base class for all SME records.

    Subclasses declare :class:`Field` class attributes. Inherited fields
    come first, in the order of the base class.
    """

    type_name: str = "Record"
    _fields: Tuple[Field, ...] = ()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        fields = list(cls._fields)
        seen = {f.name for f in fields}
        for name, value in list(cls.__dict__.items()):
            if not isinstance(value, Field):
                continue
            if name in seen:
                raise IllegalArgumentException(
                    f"Field {name!r} is already declared on a base of {cls.__name__}"
                )
            seen.add(name)
            fields.append(value)
        cls._fields = tuple(fields)
        if "type_name" not in cls.__dict__:
            cls.type_name = cls.__name__

    def __init__(self, **values: Any):
        for field in self._fields:
            if field.name in values:
                setattr(self, field.name, values.pop(field.name))
            else:
                setattr(self, field.name, field.default())
        if values:
            raise TypeError(
                f"{type(self).__name__} has no fields named: "
                f"{', '.join(sorted(values))}"
            )

    @classmethod
    def fields(cls) -> Tuple[Field, ...]:
        """Get the field declarations in wire order."""
        return cls._fields

    @classmethod
    def min_encoded_size(cls) -> int:
        """Get the size of the smallest possible encoding of this type."""
        return sum(field.codec.min_size for field in cls._fields)

    def write_data(self, sink: ByteSink) -> None:
        encode_record(sink, self)

    def read_data(self, source: ByteSource) -> None:
        decode_record(source, self)

    def encoded_size(self, config: Optional[CodecConfig] = None) -> int:
        """Get the exact number of bytes :meth:`to_bytes` produces."""
        return sum(
            field.codec.size_of(getattr(self, field.name), config)
            for field in self._fields
        )

    def to_bytes(self, config: Optional[CodecConfig] = None) -> bytes:
        """Serialize this record to bytes."""
        sink = BufferSink(config)
        encode_record(sink, self)
        return sink.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes, config: Optional[CodecConfig] = None) -> "Record":
        """Deserialize a new record of this type from bytes."""
        source = BufferSource(data, config)
        record = decode_record(source, cls())
        ensure_consumed(source)
        return record

    def to_dict(self) -> Dict[str, Any]:
        """Convert this record to plain nested Python data."""
        return {
            field.name: field.codec.to_plain(getattr(self, field.name))
            for field in self._fields
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        """Build a record from plain nested Python data.

        Missing fields keep their defaults.

        Raises:
            IllegalArgumentException: If ``data`` names unknown fields.
        """
        if not isinstance(data, dict):
            raise IllegalArgumentException(
                f"{cls.type_name} expects a mapping, got {type(data).__name__}"
            )
        names = {field.name for field in cls._fields}
        unknown = set(data) - names
        if unknown:
            raise IllegalArgumentException(
                f"{cls.type_name} has no fields named: {', '.join(sorted(map(str, unknown)))}"
            )
        values = {
            field.name: field.codec.from_plain(data[field.name])
            for field in cls._fields
            if field.name in data
        }
        return cls(**values)

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return all(
            getattr(self, field.name) == getattr(other, field.name)
            for field in self._fields
        )

    __hash__ = None

    def __repr__(self) -> str:
        body = ", ".join(
            f"{field.name}={getattr(self, field.name)!r}" for field in self._fields
        )
        return f"{self.type_name}({body})"
