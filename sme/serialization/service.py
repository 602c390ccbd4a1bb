"""Serialization service implementation."""

from typing import BinaryIO, Optional, Type, TypeVar

from sme.config import CodecConfig
from sme.exceptions import SerializationException
from sme.logging import get_logger
from sme.serialization.record import Record, decode_record, encode_record, ensure_consumed
from sme.serialization.stream import BufferSink, BufferSource, StreamSink, StreamSource

R = TypeVar("R", bound=Record)

_logger = get_logger("serialization")


class SerializationService:
    """Entry point for whole-record serialization.

    The service holds no mutable state besides its configuration, so one
    instance may be shared between threads; every call creates its own
    sink or source.
    """

    def __init__(self, config: Optional[CodecConfig] = None):
        self._config = config if config is not None else CodecConfig()

    @property
    def config(self) -> CodecConfig:
        """Get the codec configuration."""
        return self._config

    def serialize(self, record: Record) -> bytes:
        """Serialize a record to bytes.

        Args:
            record: The record to encode.

        Returns:
            The encoded bytes.
        """
        self._check_record(record)
        sink = BufferSink(self._config)
        encode_record(sink, record)
        _logger.debug("Serialized %s into %d bytes", record.type_name, len(sink))
        return sink.to_bytes()

    def deserialize(self, data: bytes, record_type: Type[R]) -> R:
        """Deserialize bytes into a new record.

        Args:
            data: The encoded bytes.
            record_type: The record class expected at the start of ``data``.

        Returns:
            The decoded record.

        Raises:
            TruncatedInputError: If ``data`` ends before the record does.
            MalformedInputError: In strict mode, if a declared length cannot
                fit or bytes remain after the record.
        """
        self._check_type(record_type)
        source = BufferSource(data, self._config)
        record = decode_record(source, record_type())
        ensure_consumed(source)
        _logger.debug(
            "Deserialized %s from %d bytes", record_type.type_name, source.position()
        )
        return record

    def write(self, stream: BinaryIO, record: Record) -> int:
        """Encode a record straight into a binary stream.

        Stream errors propagate unchanged.

        Returns:
            The number of bytes written.
        """
        self._check_record(record)
        sink = StreamSink(stream, self._config)
        encode_record(sink, record)
        return sink.bytes_written

    def read(self, stream: BinaryIO, record_type: Type[R]) -> R:
        """Decode one record from a binary stream.

        The stream is left positioned right after the record, so several
        records can be read back to back.
        """
        self._check_type(record_type)
        source = StreamSource(stream, self._config)
        return decode_record(source, record_type())

    def encoded_size(self, record: Record) -> int:
        """Get the number of bytes :meth:`serialize` would produce."""
        self._check_record(record)
        return record.encoded_size(self._config)

    @staticmethod
    def _check_record(record: Record) -> None:
        if not isinstance(record, Record):
            raise SerializationException(
                f"Only Record instances can be serialized, got {type(record).__name__}"
            )

    @staticmethod
    def _check_type(record_type: type) -> None:
        if not (isinstance(record_type, type) and issubclass(record_type, Record)):
            raise SerializationException(
                f"Expected a Record subclass, got {record_type!r}"
            )


_default_service = SerializationService()


def serialize(record: Record, config: Optional[CodecConfig] = None) -> bytes:
    """Serialize a record with the given or the default configuration."""
    service = _default_service if config is None else SerializationService(config)
    return service.serialize(record)


def deserialize(
    data: bytes, record_type: Type[R], config: Optional[CodecConfig] = None
) -> R:
    """Deserialize a record with the given or the default configuration."""
    service = _default_service if config is None else SerializationService(config)
    return service.deserialize(data, record_type)
