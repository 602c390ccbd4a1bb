"""Tests for sme/serialization/builtin.py module."""

import math
import struct

import pytest

from sme.config import CodecConfig
from sme.exceptions import (
    IllegalArgumentException,
    InvalidValueError,
    MalformedInputError,
    TruncatedInputError,
)
from sme.serialization.builtin import (
    BOOL,
    CHAR,
    DOUBLE,
    FLOAT,
    INT8,
    INT16,
    INT32,
    INT64,
    STRING,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    ListCodec,
    MapCodec,
    RecordCodec,
    get_builtin_codecs,
    is_primitive_type,
)
from sme.serialization.stream import BufferSink, BufferSource

from tests.conftest import NestedStruct, nested_bytes


def encode(codec, value, config=None):
    sink = BufferSink(config)
    codec.write(sink, value)
    return sink.to_bytes()


def decode(codec, data, config=None):
    source = BufferSource(data, config)
    value = codec.read(source)
    assert source.remaining() == 0
    return value


class TestScalarCodecs:
    """Tests for fixed-width scalar codecs."""

    @pytest.mark.parametrize("codec,fmt,value", [
        (INT8, "<b", -128),
        (INT16, "<h", -2),
        (INT32, "<i", -6),
        (INT64, "<q", 6),
        (UINT8, "<B", 255),
        (UINT16, "<H", 0xBEEF),
        (UINT32, "<I", 4),
        (UINT64, "<Q", (1 << 64) - 1),
        (DOUBLE, "<d", 4.8),
        (FLOAT, "<f", 1.5),
    ])
    def test_layout(self, codec, fmt, value):
        data = encode(codec, value)
        assert data == struct.pack(fmt, value)
        assert codec.size == struct.calcsize(fmt)
        assert decode(codec, data) == value

    @pytest.mark.parametrize("codec,value", [
        (INT8, 128),
        (INT8, -129),
        (INT16, 1 << 15),
        (INT32, -(1 << 31) - 1),
        (INT64, 1 << 63),
        (UINT8, 256),
        (UINT16, -1),
        (UINT32, -1),
        (UINT32, 1 << 32),
        (UINT64, 1 << 64),
    ])
    def test_out_of_range(self, codec, value):
        with pytest.raises(InvalidValueError):
            encode(codec, value)

    def test_integer_rejects_float(self):
        with pytest.raises(InvalidValueError):
            encode(UINT32, 1.5)

    def test_double_rejects_text(self):
        with pytest.raises(InvalidValueError):
            encode(DOUBLE, "1.5")

    def test_double_rejects_bool(self):
        with pytest.raises(InvalidValueError):
            encode(DOUBLE, True)

    def test_double_accepts_int(self):
        assert decode(DOUBLE, encode(DOUBLE, 3)) == 3.0

    def test_float_overflow(self):
        with pytest.raises(InvalidValueError):
            encode(FLOAT, 1e40)

    def test_float_rejects_inexact_value(self):
        with pytest.raises(InvalidValueError) as exc_info:
            encode(FLOAT, 4.8)
        assert "32-bit float" in str(exc_info.value)

    def test_float_narrowed_value_round_trips(self):
        narrowed = FLOAT.from_plain(4.8)
        assert narrowed == struct.unpack("<f", struct.pack("<f", 4.8))[0]
        assert decode(FLOAT, encode(FLOAT, narrowed)) == narrowed

    def test_float_special_values(self):
        assert decode(FLOAT, encode(FLOAT, float("inf"))) == float("inf")
        assert math.isnan(decode(FLOAT, encode(FLOAT, float("nan"))))
        assert math.isnan(FLOAT.from_plain("nan"))

    def test_float_from_plain_overflow(self):
        with pytest.raises(InvalidValueError):
            FLOAT.from_plain(1e40)

    def test_double_from_plain_keeps_precision(self):
        assert DOUBLE.from_plain("4.8") == 4.8

    @pytest.mark.parametrize("codec,data", [
        (DOUBLE, "abc"),
        (DOUBLE, [1.5]),
        (DOUBLE, True),
        (FLOAT, None),
    ])
    def test_float_from_plain_invalid(self, codec, data):
        with pytest.raises(InvalidValueError):
            codec.from_plain(data)

    def test_integer_from_plain(self):
        assert UINT32.from_plain("7") == 7
        assert INT64.from_plain(-3) == -3
        assert UINT32.from_plain(4.0) == 4

    @pytest.mark.parametrize("data", [4.8, -0.5, True, "abc", "4.8", None, [1]])
    def test_integer_from_plain_invalid(self, data):
        with pytest.raises(InvalidValueError):
            UINT32.from_plain(data)

    def test_big_endian(self):
        config = CodecConfig(byte_order="big")
        assert encode(UINT32, 1, config) == b"\x00\x00\x00\x01"
        assert decode(UINT32, b"\x00\x00\x00\x01", config) == 1

    def test_truncated(self):
        with pytest.raises(TruncatedInputError) as exc_info:
            UINT64.read(BufferSource(b"\x01\x02\x03"))
        assert exc_info.value.needed == 8
        assert exc_info.value.available == 3

    def test_defaults(self):
        assert UINT32.default() == 0
        assert DOUBLE.default() == 0.0
        assert BOOL.default() is False

    def test_size_of(self):
        assert INT16.size_of(5) == 2
        assert INT16.min_size == 2


class TestBoolCodec:
    """Tests for BoolCodec."""

    def test_layout(self):
        assert encode(BOOL, True) == b"\x01"
        assert encode(BOOL, False) == b"\x00"

    def test_nonzero_reads_true(self):
        assert decode(BOOL, b"\x07") is True

    @pytest.mark.parametrize("text,expected", [
        ("true", True), ("False", False), ("1", True), (" 0 ", False),
    ])
    def test_from_plain(self, text, expected):
        assert BOOL.from_plain(text) is expected

    @pytest.mark.parametrize("data", ["maybe", [1], None, 1.0])
    def test_from_plain_invalid(self, data):
        with pytest.raises(InvalidValueError):
            BOOL.from_plain(data)

    def test_from_plain_int(self):
        assert BOOL.from_plain(1) is True
        assert BOOL.from_plain(False) is False

    @pytest.mark.parametrize("value", ["no", "", None, [], 0.0])
    def test_write_rejects_non_bool(self, value):
        with pytest.raises(InvalidValueError):
            encode(BOOL, value)

    def test_write_accepts_int(self):
        assert encode(BOOL, 1) == b"\x01"


class TestCharCodec:
    """Tests for CharCodec."""

    def test_layout(self):
        assert encode(CHAR, "A") == b"A"
        assert decode(CHAR, b"\xe9") == "é"

    @pytest.mark.parametrize("value", ["", "ab", "✓", 65])
    def test_invalid(self, value):
        with pytest.raises(InvalidValueError):
            encode(CHAR, value)


class TestStringCodec:
    """Tests for StringCodec."""

    def test_layout(self):
        assert encode(STRING, "abacaba") == struct.pack("<I", 7) + b"abacaba"

    def test_empty(self):
        assert encode(STRING, "") == b"\x00\x00\x00\x00"
        assert decode(STRING, b"\x00\x00\x00\x00") == ""

    def test_length_counts_bytes(self):
        data = encode(STRING, "✓")
        assert data[:4] == struct.pack("<I", 3)
        assert decode(STRING, data) == "✓"

    def test_opaque_bytes(self):
        raw = struct.pack("<I", 3) + b"\xff\xfe\x00"
        value = decode(STRING, raw)
        assert isinstance(value, str)
        assert encode(STRING, value) == raw

    def test_bytes_value(self):
        assert encode(STRING, b"\x00\x01") == struct.pack("<I", 2) + b"\x00\x01"

    def test_invalid_value(self):
        with pytest.raises(InvalidValueError):
            encode(STRING, 5)

    def test_configured_encoding(self):
        config = CodecConfig(string_encoding="latin-1")
        assert encode(STRING, "é", config) == struct.pack("<I", 1) + b"\xe9"
        assert decode(STRING, struct.pack("<I", 1) + b"\xe9", config) == "é"

    def test_truncated_payload(self):
        data = struct.pack("<I", 1000) + b"abc"
        with pytest.raises(TruncatedInputError):
            STRING.read(BufferSource(data))

    def test_impossible_length_in_strict_mode(self, strict_config):
        data = struct.pack("<I", 1000) + b"abc"
        with pytest.raises(MalformedInputError):
            STRING.read(BufferSource(data, strict_config))

    def test_size_of(self):
        assert STRING.size_of("abacaba") == 11
        assert STRING.size_of("é") == 6
        assert STRING.min_size == 4


class TestListCodec:
    """Tests for ListCodec."""

    def test_name(self):
        assert ListCodec(UINT32).name == "list[uint32]"
        assert ListCodec(ListCodec(STRING)).name == "list[list[string]]"

    def test_layout(self):
        codec = ListCodec(UINT32)
        data = encode(codec, [0, 1, 2, 3, 4])
        assert data == struct.pack("<I5I", 5, 0, 1, 2, 3, 4)
        assert decode(codec, data) == [0, 1, 2, 3, 4]

    def test_empty(self):
        codec = ListCodec(STRING)
        assert encode(codec, []) == b"\x00\x00\x00\x00"
        assert decode(codec, b"\x00\x00\x00\x00") == []

    def test_accepts_any_iterable(self):
        assert encode(ListCodec(UINT8), (1, 2)) == b"\x02\x00\x00\x00\x01\x02"

    def test_record_elements(self):
        codec = ListCodec(RecordCodec(NestedStruct))
        value = [NestedStruct(field1=4, field2=6, field3=1.5, field4=4.8)] * 2
        data = encode(codec, value)
        assert data == struct.pack("<I", 2) + nested_bytes() * 2
        assert decode(codec, data) == value

    def test_nested_lists(self):
        codec = ListCodec(ListCodec(UINT8))
        value = [[1], [], [2, 3]]
        assert decode(codec, encode(codec, value)) == value

    def test_element_error_propagates(self):
        with pytest.raises(InvalidValueError):
            encode(ListCodec(UINT8), [1, 300])

    def test_truncated_element(self):
        data = struct.pack("<II", 2, 1)
        with pytest.raises(TruncatedInputError):
            ListCodec(UINT32).read(BufferSource(data))

    def test_impossible_count_in_strict_mode(self, strict_config):
        data = struct.pack("<II", 2, 1)
        with pytest.raises(MalformedInputError):
            ListCodec(UINT32).read(BufferSource(data, strict_config))

    def test_strict_mode_accepts_exact_count(self, strict_config):
        data = struct.pack("<III", 2, 1, 2)
        assert decode(ListCodec(UINT32), data, strict_config) == [1, 2]

    def test_plain_conversion(self):
        codec = ListCodec(RecordCodec(NestedStruct))
        plain = codec.to_plain([NestedStruct(field1=1)])
        assert plain[0]["field1"] == 1
        assert codec.from_plain(plain) == [NestedStruct(field1=1)]
        assert codec.from_plain(None) == []

    @pytest.mark.parametrize("data", [5, "abc", {"a": 1}])
    def test_from_plain_requires_list(self, data):
        with pytest.raises(InvalidValueError) as exc_info:
            ListCodec(UINT32).from_plain(data)
        assert "expects a list" in str(exc_info.value)

    @pytest.mark.parametrize("value", [5, "abc", b"ab", {1: 2}])
    def test_write_rejects_non_sequence(self, value):
        with pytest.raises(InvalidValueError):
            encode(ListCodec(UINT8), value)

    def test_size_of(self):
        assert ListCodec(STRING).size_of(["ab", ""]) == 4 + 6 + 4


class TestMapCodec:
    """Tests for MapCodec."""

    def test_name(self):
        assert MapCodec(UINT32, STRING).name == "map[uint32, string]"

    def test_layout(self):
        codec = MapCodec(UINT32, UINT32)
        data = encode(codec, {1: 10})
        assert data == struct.pack("<III", 1, 1, 10)
        assert decode(codec, data) == {1: 10}

    def test_empty(self):
        codec = MapCodec(STRING, DOUBLE)
        assert encode(codec, {}) == b"\x00\x00\x00\x00"
        assert decode(codec, b"\x00\x00\x00\x00") == {}

    def test_keys_sorted_by_default(self):
        codec = MapCodec(UINT32, UINT8)
        data = encode(codec, {3: 30, 1: 10, 2: 20})
        assert data == struct.pack("<I", 3) + b"".join(
            struct.pack("<IB", k, k * 10) for k in (1, 2, 3)
        )

    def test_insertion_order_without_sorting(self):
        config = CodecConfig(sort_map_keys=False)
        codec = MapCodec(UINT32, UINT8)
        data = encode(codec, {3: 30, 1: 10}, config)
        assert data == struct.pack("<I", 2) + struct.pack("<IB", 3, 30) + struct.pack("<IB", 1, 10)

    def test_duplicate_keys_last_write_wins(self):
        codec = MapCodec(UINT32, UINT32)
        data = encode(codec, [(1, 10), (1, 20)])
        assert data == struct.pack("<IIIII", 2, 1, 10, 1, 20)
        assert decode(codec, data) == {1: 20}

    def test_duplicate_keys_keep_order_when_sorted(self):
        codec = MapCodec(UINT32, UINT32)
        data = encode(codec, [(2, 1), (1, 10), (1, 20)])
        assert data == struct.pack("<7I", 3, 1, 10, 1, 20, 2, 1)
        assert decode(codec, data) == {1: 20, 2: 1}

    def test_string_keys(self):
        codec = MapCodec(STRING, INT8)
        value = {"b": 2, "a": -1}
        assert decode(codec, encode(codec, value)) == value

    def test_record_values(self):
        codec = MapCodec(UINT32, RecordCodec(NestedStruct))
        value = {9: NestedStruct(field1=4, field2=6, field3=1.5, field4=4.8)}
        data = encode(codec, value)
        assert data == struct.pack("<II", 1, 9) + nested_bytes()
        assert decode(codec, data) == value

    @pytest.mark.parametrize("key", [
        RecordCodec(NestedStruct),
        ListCodec(UINT32),
        MapCodec(UINT32, UINT32),
    ])
    def test_rejects_composite_keys(self, key):
        with pytest.raises(IllegalArgumentException):
            MapCodec(key, UINT32)

    def test_bad_entry(self):
        with pytest.raises(InvalidValueError):
            encode(MapCodec(UINT32, UINT32), [(1, 2, 3)])

    @pytest.mark.parametrize("data", [5, "ab", [1, 2], [(1, 2), 3]])
    def test_from_plain_requires_mapping(self, data):
        with pytest.raises(InvalidValueError):
            MapCodec(UINT32, UINT32).from_plain(data)

    def test_from_plain_converts_keys_and_values(self):
        assert MapCodec(UINT32, UINT32).from_plain({"3": "4"}) == {3: 4}

    def test_impossible_count_in_strict_mode(self, strict_config):
        data = struct.pack("<I", 100)
        with pytest.raises(MalformedInputError):
            MapCodec(UINT32, UINT32).read(BufferSource(data, strict_config))

    def test_truncated_value(self):
        data = struct.pack("<II", 1, 5)
        with pytest.raises(TruncatedInputError):
            MapCodec(UINT32, UINT32).read(BufferSource(data))

    def test_size_of(self):
        codec = MapCodec(STRING, UINT16)
        assert codec.size_of({"ab": 1}) == 4 + 6 + 2


class TestRecordCodec:
    """Tests for RecordCodec."""

    def test_in_place_without_tag(self, nested):
        assert encode(RecordCodec(NestedStruct), nested) == nested_bytes()

    def test_read_creates_new_instance(self, nested):
        value = decode(RecordCodec(NestedStruct), nested_bytes())
        assert value == nested
        assert value is not nested

    def test_wrong_type(self):
        with pytest.raises(InvalidValueError):
            encode(RecordCodec(NestedStruct), {"field1": 1})

    def test_default(self):
        assert RecordCodec(NestedStruct).default() == NestedStruct()

    def test_min_size(self):
        assert RecordCodec(NestedStruct).min_size == 28

    def test_from_plain_passes_records_through(self, nested):
        assert RecordCodec(NestedStruct).from_plain(nested) is nested


class TestPrimitiveTable:
    """Tests for the primitive name table."""

    def test_byte_alias(self):
        assert get_builtin_codecs()["byte"] is UINT8

    def test_is_primitive_type(self):
        assert is_primitive_type("string")
        assert is_primitive_type("uint64")
        assert not is_primitive_type("NestedStruct")

    def test_table_is_a_copy(self):
        codecs = get_builtin_codecs()
        codecs["uint32"] = None
        assert get_builtin_codecs()["uint32"] is UINT32
