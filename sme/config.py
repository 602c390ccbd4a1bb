"""SME codec configuration."""

import codecs
import os
from enum import Enum

from sme.exceptions import ConfigurationException
from sme.logging import get_logger

_logger = get_logger("config")


class ByteOrder(Enum):
    """Byte order used for every scalar and length prefix."""
    LITTLE = "little"
    BIG = "big"
    NATIVE = "native"

    @property
    def struct_prefix(self) -> str:
        """Get the ``struct`` format prefix for this byte order.

        ``=`` keeps standard sizes with the host byte order.
        """
        return _STRUCT_PREFIXES[self]


_STRUCT_PREFIXES = {
    ByteOrder.LITTLE: "<",
    ByteOrder.BIG: ">",
    ByteOrder.NATIVE: "=",
}


class CodecConfig:
    """Configuration shared by sinks, sources and the serialization service."""

    def __init__(
        self,
        byte_order: ByteOrder = ByteOrder.LITTLE,
        sort_map_keys: bool = True,
        strict: bool = False,
        string_encoding: str = "utf-8",
    ):
        self._byte_order = self._coerce_byte_order(byte_order)
        self._sort_map_keys = sort_map_keys
        self._strict = strict
        self._string_encoding = string_encoding
        self._validate()

    @staticmethod
    def _coerce_byte_order(value) -> ByteOrder:
        if isinstance(value, ByteOrder):
            return value
        try:
            return ByteOrder(str(value).lower())
        except ValueError:
            raise ConfigurationException(
                f"byte_order must be one of: "
                f"{', '.join(o.value for o in ByteOrder)}; got {value!r}"
            )

    def _validate(self) -> None:
        if not isinstance(self._sort_map_keys, bool):
            raise ConfigurationException("sort_map_keys must be a boolean")
        if not isinstance(self._strict, bool):
            raise ConfigurationException("strict must be a boolean")
        try:
            codecs.lookup(self._string_encoding)
        except (LookupError, TypeError):
            raise ConfigurationException(
                f"Unknown string_encoding: {self._string_encoding!r}"
            )

    @property
    def byte_order(self) -> ByteOrder:
        """Get the byte order for scalars and prefixes."""
        return self._byte_order

    @byte_order.setter
    def byte_order(self, value: ByteOrder) -> None:
        self._byte_order = self._coerce_byte_order(value)

    @property
    def struct_prefix(self) -> str:
        """Get the ``struct`` format prefix for the configured byte order."""
        return self._byte_order.struct_prefix

    @property
    def sort_map_keys(self) -> bool:
        """Whether map entries are written in key order."""
        return self._sort_map_keys

    @sort_map_keys.setter
    def sort_map_keys(self, value: bool) -> None:
        self._sort_map_keys = value
        self._validate()

    @property
    def strict(self) -> bool:
        """Whether impossible lengths and trailing bytes are rejected."""
        return self._strict

    @strict.setter
    def strict(self, value: bool) -> None:
        self._strict = value
        self._validate()

    @property
    def string_encoding(self) -> str:
        """Get the text encoding used for ``str`` string fields."""
        return self._string_encoding

    @string_encoding.setter
    def string_encoding(self, value: str) -> None:
        self._string_encoding = value
        self._validate()

    def __repr__(self) -> str:
        return (
            f"CodecConfig(byte_order={self._byte_order.value!r}, "
            f"sort_map_keys={self._sort_map_keys}, strict={self._strict}, "
            f"string_encoding={self._string_encoding!r})"
        )

    @classmethod
    def from_dict(cls, data: dict) -> "CodecConfig":
        """Create CodecConfig from a dictionary."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationException("Codec configuration must be a mapping")

        known = {"byte_order", "sort_map_keys", "strict", "string_encoding"}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationException(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )

        return cls(
            byte_order=data.get("byte_order", ByteOrder.LITTLE),
            sort_map_keys=data.get("sort_map_keys", True),
            strict=data.get("strict", False),
            string_encoding=data.get("string_encoding", "utf-8"),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "CodecConfig":
        """Load configuration from a YAML file.

        Args:
            yaml_path: Path to the YAML configuration file.

        Returns:
            CodecConfig instance.

        Raises:
            ConfigurationException: If the file cannot be read or parsed.
        """
        import yaml

        if not os.path.exists(yaml_path):
            raise ConfigurationException(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Failed to parse YAML: {e}", cause=e)
        except IOError as e:
            raise ConfigurationException(
                f"Failed to read configuration file: {e}", cause=e
            )

        _logger.debug("Loaded codec configuration from %s", yaml_path)
        return cls._from_document(data)

    @classmethod
    def from_yaml_string(cls, yaml_content: str) -> "CodecConfig":
        """Load configuration from a YAML string.

        Raises:
            ConfigurationException: If the YAML cannot be parsed.
        """
        import yaml

        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Failed to parse YAML: {e}", cause=e)

        return cls._from_document(data)

    @classmethod
    def _from_document(cls, data) -> "CodecConfig":
        if data is None:
            data = {}
        if isinstance(data, dict) and "sme" in data:
            data = data["sme"]
        return cls.from_dict(data)
