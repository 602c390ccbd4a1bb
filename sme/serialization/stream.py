"""Byte sinks and sources for in-memory buffers and file-like streams."""

import io
from typing import BinaryIO, Optional, Union

from sme.config import CodecConfig
from sme.exceptions import TruncatedInputError
from sme.serialization.api import ByteSink, ByteSource


class BufferSink(ByteSink):
    """Sink that collects output in memory."""

    def __init__(self, config: Optional[CodecConfig] = None):
        super().__init__(config)
        self._buffer = bytearray()

    def write_bytes(self, data: bytes) -> None:
        self._buffer.extend(data)

    def to_bytes(self) -> bytes:
        """Get everything written so far."""
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)


class BufferSource(ByteSource):
    """Source that reads from an in-memory byte buffer."""

    def __init__(
        self,
        data: Union[bytes, bytearray, memoryview],
        config: Optional[CodecConfig] = None,
    ):
        super().__init__(config)
        self._buffer = bytes(data)
        self._pos = 0

    def read_bytes(self, size: int) -> bytes:
        available = len(self._buffer) - self._pos
        if size > available:
            raise TruncatedInputError(
                f"Needed {size} bytes at offset {self._pos}, "
                f"but only {available} remain",
                needed=size,
                available=available,
            )
        data = self._buffer[self._pos:self._pos + size]
        self._pos += size
        return data

    def remaining(self) -> int:
        return len(self._buffer) - self._pos

    def position(self) -> int:
        return self._pos


class StreamSink(ByteSink):
    """Sink that writes straight to a binary file-like object.

    Errors raised by the stream are passed through unchanged.
    """

    def __init__(self, stream: BinaryIO, config: Optional[CodecConfig] = None):
        super().__init__(config)
        self._stream = stream
        self._written = 0

    def write_bytes(self, data: bytes) -> None:
        self._stream.write(data)
        self._written += len(data)

    @property
    def bytes_written(self) -> int:
        """Get the number of bytes written through this sink."""
        return self._written


class StreamSource(ByteSource):
    """Source that reads from a binary file-like object.

    :meth:`remaining` is only known for seekable streams; for pipes and
    sockets it returns None and truncation is detected by the read itself.
    """

    def __init__(self, stream: BinaryIO, config: Optional[CodecConfig] = None):
        super().__init__(config)
        self._stream = stream
        self._pos = 0

    def read_bytes(self, size: int) -> bytes:
        chunks = []
        missing = size
        while missing > 0:
            chunk = self._stream.read(missing)
            if not chunk:
                break
            chunks.append(chunk)
            missing -= len(chunk)
        data = b"".join(chunks)
        self._pos += len(data)
        if missing > 0:
            raise TruncatedInputError(
                f"Needed {size} bytes at offset {self._pos - len(data)}, "
                f"but the stream ended after {len(data)}",
                needed=size,
                available=len(data),
            )
        return data

    def remaining(self) -> Optional[int]:
        try:
            if not self._stream.seekable():
                return None
            current = self._stream.tell()
            end = self._stream.seek(0, io.SEEK_END)
            self._stream.seek(current, io.SEEK_SET)
        except (AttributeError, OSError):
            return None
        return end - current

    def position(self) -> int:
        return self._pos
