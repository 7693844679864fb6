"""Decode TOML dictionary documents into ordered record sequences.

A dictionary document maps human readable record names to tables of field
values::

    air   = { id = 0,    wow = 0, binary = 0, ctx = 0 }
    stone = { id = 1000, wow = 0, binary = 1, ctx = 3 }

Only the order of the entries is kept: ``air`` becomes record 0 and ``stone``
record 1.  :mod:`tomllib` builds plain dictionaries which preserve the order in
which keys appear in the text, so positions always follow the document.
"""

from __future__ import annotations

import logging
import operator
import os
import tomllib
from collections.abc import Mapping as _Mapping, Sequence as _Sequence
from pathlib import Path
from typing import (
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
    overload,
)

import numpy as np

from .bitfield import FieldLayout, FieldValue, Record
from .config import DecoderConfig, coerce_config
from .dictionary_common import (
    DictionaryIOError,
    DictionaryParseError,
    DictionaryStructureError,
    FieldOverflowError,
    TooManyRecordsError,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)
PathLike = Union[str, "os.PathLike[str]"]


class Dictionary(_Sequence, Generic[R]):
    """Immutable, positionally indexed sequence of decoded records."""

    __slots__ = ("_records", "_record_type", "_source")

    def __init__(
        self,
        record_type: Type[R],
        records: Iterable[R],
        source: Optional[Path] = None,
    ) -> None:
        self._record_type = record_type
        self._records: Tuple[R, ...] = tuple(records)
        self._source = source

    @property
    def record_type(self) -> Type[R]:
        return self._record_type

    @property
    def source(self) -> Optional[Path]:
        return self._source

    def __len__(self) -> int:
        return len(self._records)

    @overload
    def __getitem__(self, index: int) -> R: ...

    @overload
    def __getitem__(self, index: slice) -> Tuple[R, ...]: ...

    def __getitem__(self, index):
        return self._records[index]

    def __iter__(self) -> Iterator[R]:
        return iter(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dictionary):
            return NotImplemented
        return self._record_type is other._record_type and self._records == other._records

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Dictionary({self._record_type.__name__}, {len(self._records)} records"
            f"{'' if self._source is None else f', source={str(self._source)!r}'})"
        )

    def get(self, index: int, default: Optional[R] = None) -> Optional[R]:
        """Return the record at ``index`` without negative indexing or raising."""

        try:
            position = operator.index(index)
        except TypeError:
            return default
        if 0 <= position < len(self._records):
            return self._records[position]
        return default

    def to_array(self) -> np.ndarray:
        """Return the packed values as an array of the schema's backing dtype."""

        schema = self._record_type.SCHEMA
        return np.array([record.data for record in self._records], dtype=schema.backing)


def _require_record_type(record_type: object) -> Type[Record]:
    if not (isinstance(record_type, type) and issubclass(record_type, Record)):
        raise TypeError(f"Expected a Record subclass, got {record_type!r}")
    if not hasattr(record_type, "SCHEMA"):
        raise TypeError(f"{record_type.__name__} is not bound to a schema")
    return record_type


def read_document(path: PathLike, *, encoding: str = "utf-8") -> str:
    """Read the full contents of a dictionary document."""

    path = Path(path)
    try:
        text = path.read_text(encoding=encoding)
    except OSError as exc:
        raise DictionaryIOError(path, exc.strerror or exc) from exc
    except UnicodeDecodeError as exc:
        raise DictionaryIOError(path, exc) from exc
    logger.debug("Read %d characters from %s", len(text), path)
    return text


def _parse_entries(text: str, source: Optional[object] = None) -> List[Tuple[str, Mapping]]:
    try:
        document = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        where = "" if source is None else f" in {source}"
        raise DictionaryStructureError(f"TOML deserialization error{where}: {exc}") from exc

    entries: List[Tuple[str, Mapping]] = []
    for key, table in document.items():
        if not isinstance(table, dict):
            raise DictionaryStructureError(
                f"Entry {key!r} must be a table of field values, "
                f"got {type(table).__name__}"
            )
        entries.append((key, table))
    return entries


def parse_document(text: str) -> List[Mapping]:
    """Parse a document into its sub-tables, in declaration order."""

    return [table for _, table in _parse_entries(text)]


def coerce_field_value(
    entry: FieldLayout,
    raw: object,
    *,
    config: Optional[DecoderConfig] = None,
    label: str = "record",
) -> FieldValue:
    """Convert one raw TOML value into the semantic value of ``entry``."""

    config = coerce_config(config, DecoderConfig, DecoderConfig)
    if isinstance(raw, bool):
        if entry.is_boolean and config.allow_boolean_literals:
            return raw
        raise DictionaryStructureError(
            f"{label}: field {entry.name!r} expects an integer, got a boolean"
        )
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and config.allow_string_literals:
        try:
            value = int(raw.strip(), 0)
        except ValueError as exc:
            raise DictionaryParseError(entry.name, raw, exc) from exc
    else:
        raise DictionaryStructureError(
            f"{label}: field {entry.name!r} expects an unsigned integer, "
            f"got {type(raw).__name__}"
        )
    if value < 0:
        raise DictionaryStructureError(
            f"{label}: field {entry.name!r} must be unsigned, got {value}"
        )
    if value > entry.mask:
        raise FieldOverflowError(entry.name, value, entry.width)
    if entry.is_boolean:
        return value != 0
    return value


def _decode_table(
    record_type: Type[R],
    table: object,
    config: DecoderConfig,
    label: str,
) -> R:
    if not isinstance(table, _Mapping):
        raise DictionaryStructureError(
            f"{label}: expected a table of field values, got {type(table).__name__}"
        )
    schema = record_type.SCHEMA
    missing = [name for name in schema.names if name not in table]
    if missing:
        raise DictionaryStructureError(f"{label}: missing field(s) {', '.join(missing)}")
    unknown = [str(name) for name in table if name not in schema]
    if unknown:
        raise DictionaryStructureError(f"{label}: unknown field(s) {', '.join(unknown)}")
    values = [
        coerce_field_value(entry, table[entry.name], config=config, label=label)
        for entry in schema.layout
    ]
    return record_type(*values)


def decode_records(
    record_type: Type[R],
    tables: Iterable[object],
    *,
    config: Optional[DecoderConfig] = None,
    labels: Optional[Sequence[str]] = None,
) -> List[R]:
    """Build one record per table, preserving order.

    The record count is checked before any table is decoded. After that the
    first malformed table aborts the whole decode.
    """

    record_type = _require_record_type(record_type)
    config = coerce_config(config, DecoderConfig, DecoderConfig)
    tables = list(tables)
    if len(tables) > config.max_records:
        raise TooManyRecordsError(len(tables), config.max_records)

    records: List[R] = []
    for position, table in enumerate(tables):
        if labels is not None and position < len(labels):
            label = f"record {position} ({labels[position]!r})"
        else:
            label = f"record {position}"
        records.append(_decode_table(record_type, table, config, label))
    return records


def loads_dictionary(
    text: str,
    record_type: Type[R],
    *,
    config: Optional[DecoderConfig] = None,
    source: Optional[Path] = None,
) -> Dictionary[R]:
    """Decode a dictionary from the text of a document."""

    entries = _parse_entries(text, source)
    records = decode_records(
        record_type,
        [table for _, table in entries],
        config=config,
        labels=[key for key, _ in entries],
    )
    return Dictionary(record_type, records, source=source)


def load_dictionary(
    path: PathLike,
    record_type: Type[R],
    *,
    config: Optional[DecoderConfig] = None,
) -> Dictionary[R]:
    """Read and decode the dictionary document at ``path``."""

    config = coerce_config(config, DecoderConfig, DecoderConfig)
    path = Path(path)
    text = read_document(path, encoding=config.encoding)
    dictionary = loads_dictionary(text, record_type, config=config, source=path)
    logger.debug(
        "Decoded %d %s records from %s",
        len(dictionary),
        dictionary.record_type.__name__,
        path,
    )
    return dictionary


def load_records(
    path: PathLike,
    record_type: Type[R],
    *,
    config: Optional[DecoderConfig] = None,
) -> List[R]:
    """Like :func:`load_dictionary` but return a plain list of records."""

    return list(load_dictionary(path, record_type, config=config))


__all__ = [
    "Dictionary",
    "coerce_field_value",
    "decode_records",
    "load_dictionary",
    "load_records",
    "loads_dictionary",
    "parse_document",
    "read_document",
]
