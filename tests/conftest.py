"""Shared pytest fixtures for SME tests."""

import logging
import struct

import pytest

from sme.config import CodecConfig
from sme.logging import SME_ROOT_LOGGER
from sme.serialization.builtin import (
    DOUBLE,
    INT64,
    STRING,
    UINT32,
    ListCodec,
    MapCodec,
    RecordCodec,
)
from sme.serialization.record import Field, Record


EXAMPLE_SCHEMA = """\
syntax 1.0.0
package example

// four scalars
struct NestedStruct {
    uint32 field1
    int64 field2
    double field3, field4
}

struct ExampleClass1 {
    uint32 field1
    int64 field2
    double field3, field4
    string field5
    list[uint32] field6
    NestedStruct field7
    list[NestedStruct] field8
    map[uint32, uint32] field9
    map[uint32, NestedStruct] field10
}
"""


class NestedStruct(Record):
    field1 = Field(UINT32)
    field2 = Field(INT64)
    field3 = Field(DOUBLE)
    field4 = Field(DOUBLE)


class ExampleClass1(Record):
    field1 = Field(UINT32)
    field2 = Field(INT64)
    field3 = Field(DOUBLE)
    field4 = Field(DOUBLE)
    field5 = Field(STRING)
    field6 = Field(ListCodec(UINT32))
    field7 = Field(NestedStruct)
    field8 = Field(ListCodec(RecordCodec(NestedStruct)))
    field9 = Field(MapCodec(UINT32, UINT32))
    field10 = Field(MapCodec(UINT32, RecordCodec(NestedStruct)))


def nested_bytes(f1=4, f2=6, f3=1.5, f4=4.8) -> bytes:
    """Expected little-endian encoding of a NestedStruct."""
    return struct.pack("<Iqdd", f1, f2, f3, f4)


@pytest.fixture(autouse=True)
def reset_sme_logging():
    """Drop handlers attached to the sme logger by a test."""
    yield
    logger = logging.getLogger(SME_ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.disabled = False


@pytest.fixture
def default_config():
    """Create a default CodecConfig."""
    return CodecConfig()


@pytest.fixture
def strict_config():
    """Create a CodecConfig with strict length checks."""
    return CodecConfig(strict=True)


@pytest.fixture
def nested():
    """The nested value {4, 6, 1.5, 4.8}."""
    return NestedStruct(field1=4, field2=6, field3=1.5, field4=4.8)


@pytest.fixture
def canonical_record(nested):
    """The canonical example record."""
    return ExampleClass1(
        field1=4,
        field2=6,
        field3=1.5,
        field4=4.8,
        field5="abacaba",
        field6=[0, 1, 2, 3, 4],
        field7=nested,
        field8=[NestedStruct(field1=4, field2=6, field3=1.5, field4=4.8)],
    )


@pytest.fixture
def canonical_bytes():
    """Expected encoding of the canonical example record."""
    return (
        struct.pack("<Iqdd", 4, 6, 1.5, 4.8)
        + struct.pack("<I", 7) + b"abacaba"
        + struct.pack("<I", 5) + struct.pack("<5I", 0, 1, 2, 3, 4)
        + nested_bytes()
        + struct.pack("<I", 1) + nested_bytes()
        + struct.pack("<I", 0)
        + struct.pack("<I", 0)
    )


@pytest.fixture
def schema_dir(tmp_path):
    """A directory holding the example schema."""
    (tmp_path / "example.sme").write_text(EXAMPLE_SCHEMA, encoding="utf-8")
    return tmp_path
