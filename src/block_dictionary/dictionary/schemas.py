"""Record types shipped with the package and their process-wide stores.

``Block`` describes the static behaviour of a world block with five boolean
flags.  Its ``MISSING`` record is visible and collidable so that an
unresolvable block still renders and still stops movement.

``Word`` is a general purpose 39-bit layout whose ``MISSING`` record is zero.
"""

from __future__ import annotations

import numpy as np

from .bitfield import Record, Schema
from .loader import Dictionary, PathLike
from .store import DictionaryStore

BLOCK_SCHEMA = Schema.from_widths(
    {
        "hoverable": 1,
        "visible": 1,
        "breakable": 1,
        "collidable": 1,
        "replaceable": 1,
    },
    backing=np.uint8,
)

WORD_SCHEMA = Schema.from_widths(
    {"id": 30, "wow": 3, "binary": 1, "ctx": 5},
    backing=np.uint64,
)


class Block(
    Record,
    schema=BLOCK_SCHEMA,
    missing=(False, True, False, True, False),
):
    """Generic block info, intended for dictionaries rather than placed blocks."""

    __slots__ = ()

    @classmethod
    def default(cls) -> "Block":
        return cls.MISSING

    def is_hoverable(self) -> bool:
        return self.hoverable

    def is_visible(self) -> bool:
        return self.visible

    def is_breakable(self) -> bool:
        return self.breakable

    def is_collidable(self) -> bool:
        return self.collidable

    def is_replaceable(self) -> bool:
        return self.replaceable


class Word(Record, schema=WORD_SCHEMA):
    __slots__ = ()

    @classmethod
    def default(cls) -> "Word":
        return cls.MISSING


BLOCK_DICTIONARY: DictionaryStore[Block] = DictionaryStore(Block, name="block")
WORD_DICTIONARY: DictionaryStore[Word] = DictionaryStore(Word, name="word")


def initialize_block_dictionary(path: PathLike) -> Dictionary[Block]:
    """Initialize the global block dictionary.

    Raises :class:`AlreadyInitializedError` when it was initialized before.
    """

    return BLOCK_DICTIONARY.initialize(path)


def get_block_definition(index: int) -> Block:
    return BLOCK_DICTIONARY.get(index)


def initialize_word_dictionary(path: PathLike) -> Dictionary[Word]:
    return WORD_DICTIONARY.initialize(path)


def get_word_definition(index: int) -> Word:
    return WORD_DICTIONARY.get(index)


__all__ = [
    "BLOCK_DICTIONARY",
    "BLOCK_SCHEMA",
    "Block",
    "WORD_DICTIONARY",
    "WORD_SCHEMA",
    "Word",
    "get_block_definition",
    "get_word_definition",
    "initialize_block_dictionary",
    "initialize_word_dictionary",
]
