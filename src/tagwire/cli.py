"""
Command-line interface for tagwire.

Decodes bot API payloads from files against a schema revision, validates
schema documents, and lists the registered revisions. Decoded values are
printed re-encoded, i.e. normalized to exactly what the schema declares (plus
retained unknown fields unless dropped).

Results go to stdout and log lines to stderr, so output can be piped.
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from tagwire.bootstrap import load_builtin_schemas
from tagwire.codec.codec import Codec
from tagwire.core.logger import configure_root_logger, get_logger
from tagwire.models.codec_config import CodecConfig
from tagwire.schemas.loader import load_schema_document, read_structured_file
from tagwire.schemas.registry import SchemaRegistry, resolve_document

logger = get_logger(__name__)


def build_codec(
    *,
    config_path: Optional[str] = None,
    revision: Optional[str] = None,
    unknown_variant: Optional[str] = None,
    drop_unknown_fields: bool = False,
    log_level: Optional[str] = None,
) -> Codec:
    """
    Build a codec from an optional config file plus command-line overrides.

    Command-line values take precedence over the config file.
    """
    config: Dict[str, Any] = {}
    if config_path:
        config = read_structured_file(config_path)
        logger.info(f"Loaded codec config from {config_path}")

    if revision:
        config["revision"] = revision
    if unknown_variant:
        config["unknown_variant"] = unknown_variant
    if drop_unknown_fields:
        config["unknown_fields"] = "drop"
    if log_level:
        config["log_level"] = log_level

    return Codec.from_config(CodecConfig.model_validate(config))


def decode_file(codec: Codec, type_name: str, path: str) -> Any:
    """
    Decode a JSON file as ``type_name`` and return the normalized JSON value.

    A top-level array decodes each element independently (concurrently) and
    returns the list in input order.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, list):
        values = codec.decode_many(type_name, raw)
        logger.info(f"Decoded {len(values)} {type_name} values from {path}")
        return [codec.encode(v) for v in values]

    value = codec.decode(type_name, raw)
    logger.info(f"Decoded {type_name} from {path}")
    return codec.encode(value)


def validate_schema(path: str) -> List[str]:
    """
    Validate a schema document without registering it.

    ``extends`` is resolved against the registered (built-in) revisions.

    Returns:
        Names of all record and union types in the resolved revision

    Raises:
        SchemaError: If the document is invalid or cannot be resolved
        SchemaRegistryError: If it extends an unknown revision
    """
    document = load_schema_document(path)
    load_builtin_schemas()
    parent = SchemaRegistry.get(document.extends) if document.extends else None
    resolved = resolve_document(document, parent)
    logger.info(
        f"Schema revision {resolved.revision} is valid "
        f"({len(resolved.records)} records, {len(resolved.unions)} unions)"
    )
    return sorted(list(resolved.records) + list(resolved.unions))


def cli(argv: Optional[List[str]] = None) -> None:
    """
    Command-line interface for tagwire.

    Supports subcommands:
    - decode: Decode a JSON payload file and print the normalized result
    - validate-schema: Validate a schema document
    - revisions: List registered schema revisions

    Usage:
        tagwire decode StarTransactions payload.json --revision 9.1
        tagwire validate-schema my_revision.yaml
        tagwire revisions
    """
    parser = argparse.ArgumentParser(
        prog="tagwire",
        description="Schema-driven codec for bot API tagged records"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Command to execute"
    )

    # 'decode' subcommand
    decode_parser = subparsers.add_parser(
        "decode",
        help="Decode a JSON payload and print it normalized"
    )
    decode_parser.add_argument("type_name", help="Record or union type name, e.g. StarTransaction")
    decode_parser.add_argument("payload", help="Path to a JSON file (object or array of objects)")
    decode_parser.add_argument("--revision", "-r", help="Schema revision (default: newest)")
    decode_parser.add_argument("--config", "-c", help="Codec config file (JSON or YAML)")
    decode_parser.add_argument(
        "--unknown-variant",
        choices=["fail", "warn", "allow"],
        help="How to treat unknown discriminant values"
    )
    decode_parser.add_argument(
        "--drop-unknown-fields",
        action="store_true",
        help="Drop fields the schema does not declare instead of retaining them"
    )
    decode_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    # 'validate-schema' subcommand
    validate_parser = subparsers.add_parser(
        "validate-schema",
        help="Validate a schema document without registering it"
    )
    validate_parser.add_argument("path", help="Path to schema document (JSON or YAML)")

    # 'revisions' subcommand
    subparsers.add_parser(
        "revisions",
        help="List registered schema revisions"
    )

    args = parser.parse_args(argv)

    if args.command == "decode":
        configure_root_logger("DEBUG" if args.verbose else "INFO", stream="stderr")
        try:
            codec = build_codec(
                config_path=args.config,
                revision=args.revision,
                unknown_variant=args.unknown_variant,
                drop_unknown_fields=args.drop_unknown_fields,
                log_level="DEBUG" if args.verbose else None,
            )
            result = decode_file(codec, args.type_name, args.payload)
        except Exception as e:
            logger.error(f"Decode failed: {e}")
            sys.exit(1)
        print(json.dumps(result, indent=2, ensure_ascii=False))
        sys.exit(0)

    elif args.command == "validate-schema":
        configure_root_logger("INFO", stream="stderr")
        try:
            validate_schema(args.path)
            sys.exit(0)
        except Exception as e:
            logger.error(f"Validation failed: {e}")
            sys.exit(1)

    elif args.command == "revisions":
        configure_root_logger("WARNING", stream="stderr")
        load_builtin_schemas()
        for revision in SchemaRegistry.revisions():
            resolved = SchemaRegistry.get(revision)
            print(f"{revision}\t{' <- '.join(reversed(resolved.lineage))}")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    cli()
