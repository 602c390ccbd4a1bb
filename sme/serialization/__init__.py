"""SME serialization package."""

from sme.serialization.api import (
    ByteSink,
    ByteSource,
    FieldCodec,
    SmeSerializable,
)
from sme.serialization.stream import (
    BufferSink,
    BufferSource,
    StreamSink,
    StreamSource,
)
from sme.serialization.builtin import (
    ScalarCodec,
    IntegerCodec,
    FloatCodec,
    BoolCodec,
    CharCodec,
    StringCodec,
    ListCodec,
    MapCodec,
    RecordCodec,
    INT8,
    INT16,
    INT32,
    INT64,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    FLOAT,
    DOUBLE,
    BOOL,
    CHAR,
    STRING,
    get_builtin_codecs,
)
from sme.serialization.record import (
    Field,
    Record,
    encode_record,
    decode_record,
)
from sme.serialization.service import (
    SerializationService,
    serialize,
    deserialize,
)

__all__ = [
    "ByteSink",
    "ByteSource",
    "FieldCodec",
    "SmeSerializable",
    "BufferSink",
    "BufferSource",
    "StreamSink",
    "StreamSource",
    "ScalarCodec",
    "IntegerCodec",
    "FloatCodec",
    "BoolCodec",
    "CharCodec",
    "StringCodec",
    "ListCodec",
    "MapCodec",
    "RecordCodec",
    "INT8",
    "INT16",
    "INT32",
    "INT64",
    "UINT8",
    "UINT16",
    "UINT32",
    "UINT64",
    "FLOAT",
    "DOUBLE",
    "BOOL",
    "CHAR",
    "STRING",
    "get_builtin_codecs",
    "Field",
    "Record",
    "encode_record",
    "decode_record",
    "SerializationService",
    "serialize",
    "deserialize",
]
