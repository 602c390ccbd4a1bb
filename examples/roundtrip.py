#!/usr/bin/env python3
"""Record round-trip example.

Builds the canonical example record, prints its fields, serializes it,
deserializes the bytes into a fresh record and prints that too.

Topics covered:
- Declaring record types in Python
- Loading the same types from a .sme schema
- serialize / deserialize
"""

import os

from sme import (
    DOUBLE,
    INT64,
    STRING,
    UINT32,
    Field,
    ListCodec,
    MapCodec,
    Record,
    RecordCodec,
    SchemaRegistry,
    deserialize,
    serialize,
)


# -----------------------------------------------------------------------------
# Record types
# -----------------------------------------------------------------------------


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


def print_record(title: str, record: ExampleClass1) -> None:
    print(title)
    for field in record.fields():
        print(f"  {field.name} = {getattr(record, field.name)!r}")


def main() -> None:
    nested = NestedStruct(field1=4, field2=6, field3=1.5, field4=4.8)
    obj = ExampleClass1(
        field1=4,
        field2=6,
        field3=1.5,
        field4=4.8,
        field5="abacaba",
        field6=list(range(5)),
        field7=nested,
        field8=[nested],
    )
    print_record("original:", obj)

    payload = serialize(obj)
    print(f"encoded into {len(payload)} bytes: {payload.hex()}")

    restored = deserialize(payload, ExampleClass1)
    print_record("restored:", restored)
    assert restored == obj

    registry = SchemaRegistry()
    registry.load_directory(os.path.join(os.path.dirname(__file__), "schemas"))
    FromSchema = registry["example.ExampleClass1"]
    from_schema = FromSchema.from_dict(obj.to_dict())
    assert serialize(from_schema) == payload
    print("schema-loaded type produces identical bytes")


if __name__ == "__main__":
    main()
