"""Inspect a bit-packed record dictionary document.

The document is decoded against one of the bundled record types, or against an
ad-hoc schema assembled from repeated ``--field NAME:WIDTH`` options, and every
record is printed in declaration order.

Example
-------
block-dictionary-inspect tests/data/Blocks.toml --schema block
block-dictionary-inspect words.toml --field id:30 --field ctx:5 --index 0 --index 7
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, Optional, Type

import numpy as np

from ..dictionary import (
    Block,
    DictionaryError,
    DictionaryStore,
    Field,
    Record,
    Schema,
    Word,
    define_record,
    load_dictionary,
    unpack_array,
)

PROG = "block-dictionary-inspect"
RECORD_TYPES: Dict[str, Type[Record]] = {"block": Block, "word": Word}
BACKING_CHOICES = ("uint8", "uint16", "uint32", "uint64")

logger = logging.getLogger(__name__)


def _parse_field(spec: str) -> Field:
    name, sep, width = spec.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected NAME:WIDTH, got {spec!r}")
    try:
        return Field(name.strip(), int(width))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Decode a record dictionary document and print its records",
    )
    parser.add_argument("path", type=Path, help="Dictionary document (TOML)")
    parser.add_argument(
        "--schema",
        choices=sorted(RECORD_TYPES),
        default=None,
        help="Bundled record type to decode with (default: block)",
    )
    parser.add_argument(
        "--field",
        action="append",
        type=_parse_field,
        default=[],
        metavar="NAME:WIDTH",
        help="Field of an ad-hoc schema, lowest bits first (can be repeated)",
    )
    parser.add_argument(
        "--backing",
        choices=BACKING_CHOICES,
        default=None,
        help="Backing integer type of an ad-hoc schema (default: smallest that fits)",
    )
    parser.add_argument(
        "--index",
        action="append",
        type=int,
        default=[],
        help="Only print the record at this index, through a dictionary store",
    )
    parser.add_argument(
        "--array",
        action="store_true",
        help="Print each field as a column decoded from the packed array",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def resolve_record_type(args: argparse.Namespace) -> Type[Record]:
    if args.field:
        schema = Schema(tuple(args.field), args.backing)
        return define_record("Record", schema)
    return RECORD_TYPES[args.schema or "block"]


def _print_records(records: Iterable[Record]) -> None:
    for index, record in enumerate(records):
        print(f"{index}: {record}")


def _print_columns(packed: np.ndarray, schema: Schema) -> None:
    print(f"data: {packed.tolist()}")
    for name in schema.names:
        print(f"{name}: {unpack_array(schema, packed, name).tolist()}")


def _print_lookups(record_type: Type[Record], path: Path, indices: Iterable[int]) -> None:
    store = DictionaryStore(record_type, name="inspect", config={"log_fallbacks": False})
    dictionary = store.initialize(path)
    for index in indices:
        suffix = "" if dictionary.get(index) is not None else " (missing)"
        print(f"{index}: {store.get(index)}{suffix}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.field and args.schema is not None:
        parser.error("--schema and --field are mutually exclusive")
    if args.backing is not None and not args.field:
        parser.error("--backing requires --field")

    if args.verbose and not logging.getLogger().handlers:
        logging.basicConfig(level=logging.DEBUG)

    try:
        record_type = resolve_record_type(args)
        if args.index:
            _print_lookups(record_type, args.path, args.index)
            return 0
        dictionary = load_dictionary(args.path, record_type)
        logger.debug("Loaded %r", dictionary)
        if args.array:
            _print_columns(dictionary.to_array(), record_type.SCHEMA)
        else:
            _print_records(dictionary)
        return 0
    except DictionaryError as exc:
        print(f"{PROG}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
