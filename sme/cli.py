"""Command line tool for inspecting, encoding and decoding SME records.

Usage:
    sme-codec types SCHEMA_DIR
    sme-codec encode SCHEMA_DIR TYPE [INPUT.yaml] [-o OUTPUT.bin]
    sme-codec decode SCHEMA_DIR TYPE [INPUT.bin]

Options:
    --config PATH      YAML codec configuration (byte order, strict mode...)
    --log-level LEVEL  Logging level for the sme loggers (default: WARNING)

Exit Codes:
    0 - Success
    1 - Schema, configuration or codec error
"""

import argparse
import sys
from typing import List, Optional

import yaml

from sme.config import CodecConfig
from sme.exceptions import SmeException
from sme.logging import configure_logging, get_logger
from sme.schema.loader import SchemaRegistry
from sme.serialization.service import SerializationService

_logger = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sme-codec",
        description="Encode and decode SME binary records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML file with codec configuration",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    types_cmd = commands.add_parser("types", help="List record types of a schema directory")
    types_cmd.add_argument("schema_dir", help="Directory with .sme files")

    encode_cmd = commands.add_parser("encode", help="Encode a YAML document into a record")
    encode_cmd.add_argument("schema_dir", help="Directory with .sme files")
    encode_cmd.add_argument("type", help="Qualified record type, e.g. example.ExampleClass1")
    encode_cmd.add_argument("input", nargs="?", default="-", help="YAML input (default: stdin)")
    encode_cmd.add_argument("-o", "--output", default="-", help="Binary output (default: stdout)")

    decode_cmd = commands.add_parser("decode", help="Decode a record and print it as YAML")
    decode_cmd.add_argument("schema_dir", help="Directory with .sme files")
    decode_cmd.add_argument("type", help="Qualified record type, e.g. example.ExampleClass1")
    decode_cmd.add_argument("input", nargs="?", default="-", help="Binary input (default: stdin)")

    return parser


def _load_type(registry: SchemaRegistry, name: str) -> type:
    record_type = registry.get(name)
    if record_type is None:
        raise SmeException(
            f"Unknown record type {name!r}; known types: {', '.join(registry.names())}"
        )
    return record_type


def cmd_types(args: argparse.Namespace, registry: SchemaRegistry, out) -> int:
    for name in registry.names():
        out.write(f"{name}\n")
        for field in registry[name].fields():
            out.write(f"    {field.codec.name} {field.name}\n")
    return 0


def cmd_encode(
    args: argparse.Namespace, registry: SchemaRegistry, service: SerializationService
) -> int:
    record_type = _load_type(registry, args.type)
    if args.input == "-":
        document = yaml.safe_load(sys.stdin)
    else:
        with open(args.input, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    record = record_type.from_dict(document or {})
    payload = service.serialize(record)
    if args.output == "-":
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
    else:
        with open(args.output, "wb") as f:
            f.write(payload)
    _logger.info("Encoded %s into %d bytes", args.type, len(payload))
    return 0


def cmd_decode(
    args: argparse.Namespace, registry: SchemaRegistry, service: SerializationService, out
) -> int:
    record_type = _load_type(registry, args.type)
    if args.input == "-":
        payload = sys.stdin.buffer.read()
    else:
        with open(args.input, "rb") as f:
            payload = f.read()
    record = service.deserialize(payload, record_type)
    out.write(yaml.safe_dump(record.to_dict(), sort_keys=False, allow_unicode=True))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line tool and return its exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = CodecConfig.from_yaml(args.config) if args.config else CodecConfig()
        registry = SchemaRegistry()
        registry.load_directory(args.schema_dir)
        service = SerializationService(config)

        if args.command == "types":
            return cmd_types(args, registry, sys.stdout)
        if args.command == "encode":
            return cmd_encode(args, registry, service)
        return cmd_decode(args, registry, service, sys.stdout)
    except (SmeException, OSError, yaml.YAMLError) as e:
        sys.stderr.write(f"Error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
