"""Bit-packed field layouts and the record wrapper built on top of them.

A :class:`Schema` is an ordered tuple of :class:`Field` definitions.  The first
field occupies the lowest bits of the backing integer and each following field
is shifted past the widths of the ones declared before it.  The schema checks
that its fields fit into the backing numpy dtype when it is defined, so packing
and unpacking never have to re-validate the layout.

:class:`Record` subclasses bind a schema at class creation time and receive one
read-only property per field::

    class Word(Record, schema=Schema.from_widths({"id": 30, "ctx": 5})):
        __slots__ = ()

    Word(1000, 3).id  # -> 1000
"""

from __future__ import annotations

import keyword
import operator
from dataclasses import dataclass, field
from typing import (
    Any,
    ClassVar,
    Dict,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
)

import numpy as np

from .dictionary_common import BACKING_DTYPES, FieldOverflowError, SchemaError

FieldValue = Union[int, bool]
R = TypeVar("R", bound="Record")


@dataclass(frozen=True)
class Field:
    """A named record component occupying ``width`` bits."""

    name: str
    width: int

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.isidentifier():
            raise SchemaError(f"Field name {self.name!r} is not a valid identifier")
        if keyword.iskeyword(self.name) or self.name.startswith("_"):
            raise SchemaError(f"Field name {self.name!r} is reserved")
        if isinstance(self.width, bool) or not isinstance(self.width, int):
            raise SchemaError(f"Width of field {self.name!r} must be an integer")
        if self.width < 1:
            raise SchemaError(
                f"Width of field {self.name!r} must be >= 1, got {self.width}"
            )

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    @property
    def is_boolean(self) -> bool:
        return self.width == 1


@dataclass(frozen=True)
class FieldLayout:
    """Accessor table entry describing where a field lives in the packed value."""

    field: Field
    shift: int

    @property
    def name(self) -> str:
        return self.field.name

    @property
    def width(self) -> int:
        return self.field.width

    @property
    def mask(self) -> int:
        return self.field.mask

    @property
    def is_boolean(self) -> bool:
        return self.field.is_boolean

    def insert(self, value: FieldValue) -> int:
        """Return ``value`` shifted into position, rejecting overflow."""

        try:
            number = operator.index(value)
        except TypeError:
            raise TypeError(
                f"Field {self.name!r} expects an integer, got {type(value).__name__}"
            ) from None
        if number < 0 or number > self.mask:
            raise FieldOverflowError(self.name, number, self.width)
        return (number & self.mask) << self.shift

    def extract(self, data: int) -> FieldValue:
        value = (data >> self.shift) & self.mask
        if self.is_boolean:
            return value != 0
        return value


def _coerce_field(value: object) -> Field:
    if isinstance(value, Field):
        return value
    if isinstance(value, tuple) and len(value) == 2:
        return Field(*value)
    raise SchemaError(f"Expected Field or (name, width) pair, got {value!r}")


def _smallest_backing(total_bits: int) -> np.dtype:
    for dtype in BACKING_DTYPES:
        if total_bits <= np.iinfo(dtype).bits:
            return dtype
    raise SchemaError(
        f"Schema needs {total_bits} bits which exceeds every supported backing type"
    )


@dataclass(frozen=True)
class Schema:
    """Ordered field layout bound to an unsigned numpy backing dtype."""

    fields: Tuple[Field, ...]
    backing: Optional[np.dtype] = None
    _layout: Tuple[FieldLayout, ...] = field(init=False, repr=False, compare=False)
    _index: Dict[str, FieldLayout] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        fields = tuple(_coerce_field(item) for item in self.fields)
        if not fields:
            raise SchemaError("Schema requires at least one field")
        object.__setattr__(self, "fields", fields)

        layout = []
        index: Dict[str, FieldLayout] = {}
        shift = 0
        for item in fields:
            if item.name in index:
                raise SchemaError(f"Duplicate field name {item.name!r}")
            entry = FieldLayout(field=item, shift=shift)
            layout.append(entry)
            index[item.name] = entry
            shift += item.width
        total_bits = shift

        if self.backing is None:
            backing = _smallest_backing(total_bits)
        else:
            try:
                backing = np.dtype(self.backing)
            except TypeError as exc:
                raise SchemaError(f"Unsupported backing type {self.backing!r}") from exc
            if backing not in BACKING_DTYPES:
                raise SchemaError(
                    f"Backing type must be an unsigned integer dtype, got {backing}"
                )
        capacity = np.iinfo(backing).bits
        if total_bits > capacity:
            raise SchemaError(
                f"Fields need {total_bits} bits but backing type {backing} "
                f"holds only {capacity}"
            )
        object.__setattr__(self, "backing", backing)
        object.__setattr__(self, "_layout", tuple(layout))
        object.__setattr__(self, "_index", index)

    @classmethod
    def from_widths(
        cls,
        widths: Union[Mapping[str, int], Iterable[Tuple[str, int]]],
        backing: Optional[Any] = None,
    ) -> "Schema":
        """Build a schema from ``name -> width`` pairs in declaration order."""

        items = widths.items() if isinstance(widths, Mapping) else widths
        return cls(tuple(Field(name, width) for name, width in items), backing)

    @property
    def layout(self) -> Tuple[FieldLayout, ...]:
        return self._layout

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(item.name for item in self.fields)

    @property
    def total_bits(self) -> int:
        return sum(item.width for item in self.fields)

    @property
    def capacity(self) -> int:
        return int(np.iinfo(self.backing).bits)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def layout_of(self, name: str) -> FieldLayout:
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"Schema has no field named {name!r}") from None

    def fits(self, data: int) -> bool:
        return 0 <= data < (1 << self.total_bits)

    def pack(self, values: Sequence[FieldValue]) -> int:
        """Pack one value per field, in declaration order, into an integer."""

        if len(values) != len(self._layout):
            raise TypeError(
                f"Expected {len(self._layout)} field values, got {len(values)}"
            )
        data = 0
        for entry, value in zip(self._layout, values):
            data |= entry.insert(value)
        return data

    def pack_mapping(self, values: Mapping[str, FieldValue]) -> int:
        """Pack values looked up by field name; every field must be present."""

        missing = [name for name in self._index if name not in values]
        if missing:
            raise SchemaError(f"Missing field(s): {', '.join(missing)}")
        unknown = [str(name) for name in values if name not in self._index]
        if unknown:
            raise SchemaError(f"Unknown field(s): {', '.join(unknown)}")
        return self.pack([values[name] for name in self._index])

    def unpack(self, data: int, name: str) -> FieldValue:
        return self.layout_of(name).extract(int(data))

    def unpack_all(self, data: int) -> Tuple[FieldValue, ...]:
        data = int(data)
        return tuple(entry.extract(data) for entry in self._layout)


def pack(schema: Schema, values: Sequence[FieldValue]) -> int:
    return schema.pack(values)


def unpack(schema: Schema, data: int, name: str) -> FieldValue:
    return schema.unpack(data, name)


def unpack_array(schema: Schema, array: Any, name: str) -> np.ndarray:
    """Vectorised :func:`unpack` over an array of packed values.

    Width-1 fields produce a boolean array; every other field keeps the
    schema's backing dtype.
    """

    entry = schema.layout_of(name)
    scalar = schema.backing.type
    packed = np.asarray(array, dtype=schema.backing)
    values = (packed >> scalar(entry.shift)) & scalar(entry.mask)
    if entry.is_boolean:
        return values != 0
    return values


def _field_property(entry: FieldLayout) -> property:
    def getter(self: "Record") -> FieldValue:
        return entry.extract(self._data)

    getter.__name__ = entry.name
    getter.__doc__ = f"Value of the ``{entry.name}`` field ({entry.width} bit)."
    return property(getter)


class Record:
    """Typed view over one packed integer.

    Subclasses pass ``schema=`` (and optionally ``missing=``) as class keywords.
    ``missing`` is either a tuple of field values, a mapping of field names to
    values, or ``None`` for the all-zero record.
    """

    __slots__ = ("_data",)

    SCHEMA: ClassVar[Schema]
    MISSING: ClassVar["Record"]

    def __init_subclass__(
        cls,
        *,
        schema: Optional[Schema] = None,
        missing: Union[None, Sequence[FieldValue], Mapping[str, FieldValue]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        if schema is None:
            if missing is not None:
                raise TypeError("missing= requires schema=")
            return
        if not isinstance(schema, Schema):
            raise TypeError(f"schema must be a Schema, got {type(schema).__name__}")
        for entry in schema.layout:
            if entry.name in _RECORD_ATTRIBUTES or entry.name in vars(cls):
                raise SchemaError(
                    f"Field name {entry.name!r} collides with an attribute of {cls.__name__}"
                )
        for entry in schema.layout:
            setattr(cls, entry.name, _field_property(entry))
        cls.SCHEMA = schema
        if missing is None:
            cls.MISSING = cls.from_data(0)
        elif isinstance(missing, Mapping):
            cls.MISSING = cls.from_mapping(missing)
        else:
            cls.MISSING = cls(*missing)

    def __init__(self, *values: FieldValue, **named: FieldValue) -> None:
        schema = self._schema()
        if len(values) > len(schema):
            raise TypeError(
                f"{type(self).__name__} takes {len(schema)} field values, got {len(values)}"
            )
        merged: Dict[str, FieldValue] = dict(zip(schema.names, values))
        for name, value in named.items():
            if name not in schema:
                raise TypeError(f"{type(self).__name__} has no field {name!r}")
            if name in merged:
                raise TypeError(f"Field {name!r} given more than once")
            merged[name] = value
        missing = [name for name in schema.names if name not in merged]
        if missing:
            raise TypeError(
                f"{type(self).__name__} missing field value(s): {', '.join(missing)}"
            )
        self._data = schema.pack([merged[name] for name in schema.names])

    @classmethod
    def _schema(cls) -> Schema:
        try:
            return cls.SCHEMA
        except AttributeError:
            raise TypeError(f"{cls.__name__} is not bound to a schema") from None

    @classmethod
    def from_data(cls: Type[R], data: int) -> R:
        """Wrap an already packed integer."""

        schema = cls._schema()
        number = operator.index(data)
        if not schema.fits(number):
            raise FieldOverflowError("data", number, schema.total_bits)
        record = cls.__new__(cls)
        record._data = number
        return record

    @classmethod
    def from_mapping(cls: Type[R], values: Mapping[str, FieldValue]) -> R:
        return cls.from_data(cls._schema().pack_mapping(values))

    @property
    def data(self) -> int:
        return self._data

    def values(self) -> Tuple[FieldValue, ...]:
        return self._schema().unpack_all(self._data)

    def as_dict(self) -> Dict[str, FieldValue]:
        return dict(zip(self._schema().names, self.values()))

    def __int__(self) -> int:
        return self._data

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._data == other._data  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self._data))

    def __reduce__(self):
        return (type(self).from_data, (self._data,))

    def __str__(self) -> str:
        body = ", ".join(f"{name}: {value}" for name, value in self.as_dict().items())
        return f"{{ {body} }}"

    def __repr__(self) -> str:
        return f"{type(self).__name__} {self}"


_RECORD_ATTRIBUTES = frozenset(dir(Record)) | {"SCHEMA", "MISSING"}


def define_record(
    name: str,
    schema: Schema,
    *,
    missing: Union[None, Sequence[FieldValue], Mapping[str, FieldValue]] = None,
) -> Type[Record]:
    """Create a :class:`Record` subclass for a schema known only at runtime."""

    namespace = {
        "__slots__": (),
        "__doc__": f"Packed record with fields {', '.join(schema.names)}.",
    }
    return type(name, (Record,), namespace, schema=schema, missing=missing)


__all__ = [
    "Field",
    "FieldLayout",
    "FieldValue",
    "Record",
    "Schema",
    "define_record",
    "pack",
    "unpack",
    "unpack_array",
]
