"""Serialization API interfaces.

This module defines the core interfaces of the SME codec: the byte sink
and byte source that codecs write to and read from, the field codec
contract, and the self-serialization capability shared by every record.

Every multi-byte value is written in the byte order of the sink's
:class:`~sme.config.CodecConfig` (little-endian unless configured
otherwise). Nothing is aligned or padded.

Example:
    Implementing a custom codec::

        from sme.serialization.api import ByteSink, ByteSource, FieldCodec

        class Rgb565Codec(FieldCodec[tuple]):
            @property
            def name(self) -> str:
                return "rgb565"

            def write(self, sink: ByteSink, value: tuple) -> None:
                r, g, b = value
                sink.write_uint16((r << 11) | (g << 5) | b)

            def read(self, source: ByteSource) -> tuple:
                v = source.read_uint16()
                return (v >> 11, (v >> 5) & 0x3F, v & 0x1F)

            def default(self) -> tuple:
                return (0, 0, 0)

            def size_of(self, value: tuple, config=None) -> int:
                return 2
"""

import struct
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from sme.config import CodecConfig
from sme.exceptions import InvalidValueError

T = TypeVar("T")

UINT32_SIZE = 4


class ByteSink(ABC):
    """Interface for sequential byte output.

    Concrete sinks only implement :meth:`write_bytes`; the typed writers
    pack values with the configured byte order.
    """

    def __init__(self, config: Optional[CodecConfig] = None):
        self._config = config if config is not None else CodecConfig()
        self._prefix = self._config.struct_prefix

    @property
    def config(self) -> CodecConfig:
        """Get the codec configuration of this sink."""
        return self._config

    @abstractmethod
    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes.

        Args:
            data: The bytes to append to the output.
        """
        pass

    def _pack(self, fmt: str, value: Any) -> None:
        try:
            packed = struct.pack(self._prefix + fmt, value)
        except (struct.error, OverflowError) as e:
            raise InvalidValueError(
                f"Value {value!r} does not fit format '{fmt}': {e}", cause=e
            )
        self.write_bytes(packed)

    def write_bool(self, value: bool) -> None:
        self._pack("?", bool(value))

    def write_int8(self, value: int) -> None:
        self._pack("b", value)

    def write_int16(self, value: int) -> None:
        self._pack("h", value)

    def write_int32(self, value: int) -> None:
        self._pack("i", value)

    def write_int64(self, value: int) -> None:
        self._pack("q", value)

    def write_uint8(self, value: int) -> None:
        self._pack("B", value)

    def write_uint16(self, value: int) -> None:
        self._pack("H", value)

    def write_uint32(self, value: int) -> None:
        self._pack("I", value)

    def write_uint64(self, value: int) -> None:
        self._pack("Q", value)

    def write_float(self, value: float) -> None:
        self._pack("f", value)

    def write_double(self, value: float) -> None:
        self._pack("d", value)

    def write_count(self, count: int) -> None:
        """Write a length or element-count prefix (uint32)."""
        self.write_uint32(count)


class ByteSource(ABC):
    """Interface for sequential byte input.

    Concrete sources implement :meth:`read_bytes`, :meth:`remaining` and
    :meth:`position`. A read that cannot be satisfied raises
    :class:`~sme.exceptions.TruncatedInputError`.
    """

    def __init__(self, config: Optional[CodecConfig] = None):
        self._config = config if config is not None else CodecConfig()
        self._prefix = self._config.struct_prefix

    @property
    def config(self) -> CodecConfig:
        """Get the codec configuration of this source."""
        return self._config

    @abstractmethod
    def read_bytes(self, size: int) -> bytes:
        """Read exactly ``size`` bytes.

        Args:
            size: Number of bytes to read.

        Returns:
            The bytes read.

        Raises:
            TruncatedInputError: If fewer than ``size`` bytes are left.
        """
        pass

    @abstractmethod
    def remaining(self) -> Optional[int]:
        """Get the number of unread bytes, or None if unknown."""
        pass

    @abstractmethod
    def position(self) -> int:
        """Get the number of bytes consumed so far."""
        pass

    def _unpack(self, fmt: str, size: int) -> Any:
        return struct.unpack(self._prefix + fmt, self.read_bytes(size))[0]

    def read_bool(self) -> bool:
        return self._unpack("B", 1) != 0

    def read_int8(self) -> int:
        return self._unpack("b", 1)

    def read_int16(self) -> int:
        return self._unpack("h", 2)

    def read_int32(self) -> int:
        return self._unpack("i", 4)

    def read_int64(self) -> int:
        return self._unpack("q", 8)

    def read_uint8(self) -> int:
        return self._unpack("B", 1)

    def read_uint16(self) -> int:
        return self._unpack("H", 2)

    def read_uint32(self) -> int:
        return self._unpack("I", 4)

    def read_uint64(self) -> int:
        return self._unpack("Q", 8)

    def read_float(self) -> float:
        return self._unpack("f", 4)

    def read_double(self) -> float:
        return self._unpack("d", 8)

    def read_count(self) -> int:
        """Read a length or element-count prefix (uint32)."""
        return self.read_uint32()


class FieldCodec(ABC, Generic[T]):
    """Base interface for the codec of one field kind.

    Codecs are stateless and may be shared between fields, records and
    threads.

    Type Parameters:
        T: The Python type of values this codec handles.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the schema type name, e.g. ``uint32`` or ``list[string]``."""
        pass

    @abstractmethod
    def write(self, sink: ByteSink, value: T) -> None:
        """Write a value to the sink."""
        pass

    @abstractmethod
    def read(self, source: ByteSource) -> T:
        """Read a value from the source."""
        pass

    @abstractmethod
    def default(self) -> T:
        """Get a fresh zero/empty value for this kind."""
        pass

    @abstractmethod
    def size_of(self, value: T, config: Optional[CodecConfig] = None) -> int:
        """Get the number of bytes :meth:`write` produces for ``value``."""
        pass

    @property
    def min_size(self) -> int:
        """Get the smallest possible encoding of any value, in bytes."""
        return 0

    def to_plain(self, value: T) -> Any:
        """Convert a value to plain Python data (for YAML and dicts)."""
        return value

    def from_plain(self, data: Any) -> T:
        """Convert plain Python data back into a field value."""
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"


class SmeSerializable(ABC):
    """Interface for objects that can serialize themselves.

    Every record type implements this capability. The enclosing record
    knows statically which concrete type occupies a nested slot, so no
    type tag is written.

    Example:
        >>> class Point(SmeSerializable):
        ...     def __init__(self, x: int = 0, y: int = 0):
        ...         self.x = x
        ...         self.y = y
        ...
        ...     def write_data(self, sink: ByteSink) -> None:
        ...         sink.write_int32(self.x)
        ...         sink.write_int32(self.y)
        ...
        ...     def read_data(self, source: ByteSource) -> None:
        ...         self.x = source.read_int32()
        ...         self.y = source.read_int32()
    """

    @abstractmethod
    def write_data(self, sink: ByteSink) -> None:
        """Write this object's fields to the sink."""
        pass

    @abstractmethod
    def read_data(self, source: ByteSource) -> None:
        """Overwrite this object's fields from the source."""
        pass
