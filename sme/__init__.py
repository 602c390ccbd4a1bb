"""SME: fixed-layout binary encoding for structured records."""

from sme.config import ByteOrder, CodecConfig
from sme.exceptions import (
    SmeException,
    IllegalArgumentException,
    ConfigurationException,
    SchemaException,
    SerializationException,
    TruncatedInputError,
    MalformedInputError,
    InvalidValueError,
)
from sme.serialization import (
    ByteSink,
    ByteSource,
    BufferSink,
    BufferSource,
    StreamSink,
    StreamSource,
    FieldCodec,
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
    Field,
    Record,
    encode_record,
    decode_record,
    SerializationService,
    serialize,
    deserialize,
)
from sme.schema import SchemaRegistry, parse_schema, load_directory

__all__ = [
    # Configuration
    "ByteOrder",
    "CodecConfig",
    # Exceptions
    "SmeException",
    "IllegalArgumentException",
    "ConfigurationException",
    "SchemaException",
    "SerializationException",
    "TruncatedInputError",
    "MalformedInputError",
    "InvalidValueError",
    # Sinks and sources
    "ByteSink",
    "ByteSource",
    "BufferSink",
    "BufferSource",
    "StreamSink",
    "StreamSource",
    # Codecs
    "FieldCodec",
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
    # Records
    "Field",
    "Record",
    "encode_record",
    "decode_record",
    "SerializationService",
    "serialize",
    "deserialize",
    # Schemas
    "SchemaRegistry",
    "parse_schema",
    "load_directory",
]

__version__ = "0.1.0"
