"""Bit-packed record dictionaries: codec, decoder and once-initialized store."""

from .bitfield import (
    Field,
    FieldLayout,
    Record,
    Schema,
    define_record,
    pack,
    unpack,
    unpack_array,
)
from .config import DecoderConfig, StoreConfig
from .dictionary_common import (
    MAX_RECORD_INDEX,
    AlreadyInitializedError,
    DictionaryError,
    DictionaryIOError,
    DictionaryParseError,
    DictionaryStructureError,
    FieldOverflowError,
    SchemaError,
    TooManyRecordsError,
)
from .loader import (
    Dictionary,
    decode_records,
    load_dictionary,
    load_records,
    loads_dictionary,
    parse_document,
)
from .schemas import (
    BLOCK_DICTIONARY,
    WORD_DICTIONARY,
    Block,
    Word,
    get_block_definition,
    get_word_definition,
    initialize_block_dictionary,
    initialize_word_dictionary,
)
from .store import DictionaryStore, StoreState

__all__ = [
    "AlreadyInitializedError",
    "BLOCK_DICTIONARY",
    "Block",
    "DecoderConfig",
    "Dictionary",
    "DictionaryError",
    "DictionaryIOError",
    "DictionaryParseError",
    "DictionaryStore",
    "DictionaryStructureError",
    "Field",
    "FieldLayout",
    "FieldOverflowError",
    "MAX_RECORD_INDEX",
    "Record",
    "Schema",
    "SchemaError",
    "StoreConfig",
    "StoreState",
    "TooManyRecordsError",
    "WORD_DICTIONARY",
    "Word",
    "decode_records",
    "define_record",
    "get_block_definition",
    "get_word_definition",
    "initialize_block_dictionary",
    "initialize_word_dictionary",
    "load_dictionary",
    "load_records",
    "loads_dictionary",
    "pack",
    "parse_document",
    "unpack",
    "unpack_array",
]
