"""Configuration for the dictionary decoder and store."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Type, TypeVar

from .dictionary_common import DEFAULT_ENCODING, MAX_RECORD_INDEX

T = TypeVar("T")


@dataclass(frozen=True)
class DecoderConfig:
    """Parameters controlling how dictionary documents are decoded."""

    max_records: int = MAX_RECORD_INDEX
    allow_string_literals: bool = True
    allow_boolean_literals: bool = True
    encoding: str = DEFAULT_ENCODING

    def __post_init__(self) -> None:
        if not 0 <= self.max_records <= MAX_RECORD_INDEX:
            raise ValueError(
                f"max_records must be between 0 and {MAX_RECORD_INDEX}"
            )
        if not self.encoding:
            raise ValueError("encoding must be a non-empty codec name")


@dataclass(frozen=True)
class StoreConfig:
    """Parameters controlling a :class:`~block_dictionary.dictionary.store.DictionaryStore`."""

    decoder: DecoderConfig = dataclasses.field(default_factory=DecoderConfig)
    log_fallbacks: bool = True
    fallback_log_level: int = logging.WARNING

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "decoder", coerce_config(self.decoder, DecoderConfig, DecoderConfig)
        )
        if isinstance(self.fallback_log_level, str):
            level = logging.getLevelName(self.fallback_log_level.upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level {self.fallback_log_level!r}")
            object.__setattr__(self, "fallback_log_level", level)


def coerce_config(value: object, cls: Type[T], factory: Callable[[], T]) -> T:
    """Return an instance of ``cls`` merging ``value`` with default fields.

    ``value`` may already be an instance, a dictionary holding only the
    parameters the caller wants to override, or ``None`` for the defaults.
    ``factory`` is evaluated on each call so mutable defaults are never shared.
    """

    if value is None:
        return factory()
    if isinstance(value, cls):
        return value
    if isinstance(value, dict):
        default = factory()
        init_fields = {item.name for item in dataclasses.fields(cls) if item.init}
        unknown = sorted(set(value) - init_fields)
        if unknown:
            raise TypeError(f"Unknown {cls.__name__} option(s): {', '.join(unknown)}")
        merged = {name: getattr(default, name) for name in init_fields}
        merged.update(value)
        return cls(**merged)  # type: ignore[arg-type]
    raise TypeError(f"Expected {cls.__name__} or dict, got {type(value)!r}")


__all__ = ["DecoderConfig", "StoreConfig", "coerce_config"]
