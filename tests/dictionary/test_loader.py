"""Tests for decoding dictionary documents."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from block_dictionary.dictionary import (
    Block,
    DecoderConfig,
    Dictionary,
    DictionaryIOError,
    DictionaryParseError,
    DictionaryStructureError,
    FieldOverflowError,
    TooManyRecordsError,
    Word,
    decode_records,
    load_dictionary,
    load_records,
    loads_dictionary,
    parse_document,
)
from block_dictionary.dictionary.config import coerce_config

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
BLOCKS_PATH = DATA_DIR / "Blocks.toml"
WORDS_PATH = DATA_DIR / "Words.toml"


def _block_document(count: int) -> str:
    lines = []
    for index in range(count):
        flag = index % 2
        lines.append(
            f"block{index} = {{ hoverable = {flag}, visible = 1, breakable = 0, "
            f"collidable = 0, replaceable = {1 - flag} }}"
        )
    return "\n".join(lines) + "\n"


def _write(tmp_path: Path, text: str, name: str = "dictionary.toml") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_block_file_decodes_expected_flags() -> None:
    blocks = load_records(BLOCKS_PATH, Block)
    air = blocks[0]
    bedrock = blocks[4]

    assert len(blocks) == 5
    assert air.is_replaceable()
    assert not bedrock.is_breakable()
    assert bedrock.is_visible()


def test_records_follow_document_order_not_key_order() -> None:
    dictionary = load_dictionary(WORDS_PATH, Word)

    assert [word.id for word in dictionary] == [7, 0, 1000, (1 << 30) - 1]
    assert dictionary[2] == Word(1000, 0, True, 3)
    assert dictionary.source == WORDS_PATH
    assert dictionary.record_type is Word


def test_table_headers_keep_declaration_order() -> None:
    text = (
        "[zulu]\nid = 3\nwow = 0\nbinary = 0\nctx = 0\n\n"
        "[alpha]\nid = 1\nwow = 0\nbinary = 0\nctx = 0\n\n"
        "[mike]\nid = 2\nwow = 0\nbinary = 0\nctx = 0\n"
    )

    dictionary = loads_dictionary(text, Word)

    assert [word.id for word in dictionary] == [3, 1, 2]


def test_keys_are_dropped_by_parse_document() -> None:
    tables = parse_document('b = { x = 1 }\na = { x = 2 }\n')

    assert tables == [{"x": 1}, {"x": 2}]


def test_empty_document_decodes_to_empty_dictionary() -> None:
    assert len(loads_dictionary("", Block)) == 0


def test_max_record_count_is_accepted(tmp_path: Path) -> None:
    path = _write(tmp_path, _block_document(255))

    dictionary = load_dictionary(path, Block)

    assert len(dictionary) == 255
    assert dictionary[254].is_hoverable() is False
    assert dictionary[253].is_hoverable() is True


@pytest.mark.parametrize("count", [256, 300])
def test_too_many_records_reports_count_and_limit(tmp_path: Path, count: int) -> None:
    path = _write(tmp_path, _block_document(count))

    with pytest.raises(TooManyRecordsError) as excinfo:
        load_dictionary(path, Block)

    assert excinfo.value.count == count
    assert excinfo.value.max_allowed == 255


def test_missing_file_is_io_error(tmp_path: Path) -> None:
    with pytest.raises(DictionaryIOError) as excinfo:
        load_dictionary(tmp_path / "absent.toml", Block)

    assert isinstance(excinfo.value.__cause__, FileNotFoundError)
    assert str(excinfo.value).startswith("I/O error")


def test_string_literals_are_parsed_as_integers() -> None:
    text = 'stone = { id = "0x3E8", wow = "0", binary = "1", ctx = " 3 " }\n'

    (stone,) = loads_dictionary(text, Word)

    assert stone == Word(1000, 0, True, 3)


def test_malformed_literal_is_parse_error() -> None:
    text = 'stone = { id = "12abc", wow = 0, binary = 0, ctx = 0 }\n'

    with pytest.raises(DictionaryParseError) as excinfo:
        loads_dictionary(text, Word)

    assert excinfo.value.field == "id"
    assert excinfo.value.literal == "12abc"


@pytest.mark.parametrize(
    "text",
    [
        "air = { id = 0, wow = 0, binary = 0 }\n",
        "air = { id = 0, wow = 0, binary = 0, ctx = 0, extra = 1 }\n",
        "air = { id = 1.5, wow = 0, binary = 0, ctx = 0 }\n",
        "air = { id = -4, wow = 0, binary = 0, ctx = 0 }\n",
        "air = { id = true, wow = 0, binary = 0, ctx = 0 }\n",
        "air = { id = [1], wow = 0, binary = 0, ctx = 0 }\n",
        "air = 3\n",
        "air = { id = 0, wow = 0, binary = 0, ctx = 0\n",
    ],
    ids=["missing", "extra", "float", "negative", "bool", "array", "scalar", "syntax"],
)
def test_structural_mismatches_are_rejected(text: str) -> None:
    with pytest.raises(DictionaryStructureError):
        loads_dictionary(text, Word)


def test_boolean_literals_allowed_for_flag_fields() -> None:
    text = (
        "air = { hoverable = false, visible = false, breakable = false, "
        "collidable = false, replaceable = true }\n"
    )

    (air,) = loads_dictionary(text, Block)

    assert air.is_replaceable()
    assert not air.is_visible()


def test_width_overflow_in_document() -> None:
    text = "air = { id = 0, wow = 8, binary = 0, ctx = 0 }\n"

    with pytest.raises(FieldOverflowError) as excinfo:
        loads_dictionary(text, Word)

    assert excinfo.value.field == "wow"


def test_first_error_wins() -> None:
    text = (
        'first = { id = "bad", wow = 0, binary = 0, ctx = 0 }\n'
        "second = { id = 0 }\n"
    )

    with pytest.raises(DictionaryParseError):
        loads_dictionary(text, Word)


def test_structure_errors_name_the_record() -> None:
    text = (
        "good = { id = 0, wow = 0, binary = 0, ctx = 0 }\n"
        "broken = { id = 0, wow = 0, binary = 0 }\n"
    )

    with pytest.raises(DictionaryStructureError, match=r"record 1 \('broken'\).*ctx"):
        loads_dictionary(text, Word)


def test_decode_records_from_tables() -> None:
    tables = [
        {"id": 1, "wow": 2, "binary": 1, "ctx": 3},
        {"id": 4, "wow": 5, "binary": 0, "ctx": 6},
    ]

    records = decode_records(Word, tables)

    assert records == [Word(1, 2, True, 3), Word(4, 5, False, 6)]


def test_decode_records_requires_record_type() -> None:
    with pytest.raises(TypeError):
        decode_records(dict, [])  # type: ignore[arg-type]


def test_dictionary_lookup_and_array_export() -> None:
    dictionary = load_dictionary(WORDS_PATH, Word)
    packed = dictionary.to_array()

    assert packed.dtype == np.uint64
    assert packed.tolist() == [word.data for word in dictionary]
    assert dictionary.get(2) == Word(1000, 0, True, 3)
    assert dictionary.get(np.int64(1)) == Word(0, 0, False, 0)
    assert dictionary.get(4) is None
    assert dictionary.get(-1) is None
    assert dictionary.get("0", Word.MISSING) is Word.MISSING


def test_dictionary_is_a_sequence() -> None:
    dictionary = load_dictionary(BLOCKS_PATH, Block)

    assert isinstance(dictionary, Dictionary)
    assert Block.from_data(dictionary[4].data) in dictionary
    assert dictionary[1:3] == (dictionary[1], dictionary[2])
    assert dictionary == load_dictionary(BLOCKS_PATH, Block)


def test_decoder_config_limits_record_count() -> None:
    text = _block_document(3)

    with pytest.raises(TooManyRecordsError) as excinfo:
        loads_dictionary(text, Block, config=DecoderConfig(max_records=2))

    assert excinfo.value.count == 3
    assert excinfo.value.max_allowed == 2


def test_decoder_config_can_reject_string_literals() -> None:
    text = 'stone = { id = "1", wow = 0, binary = 0, ctx = 0 }\n'

    with pytest.raises(DictionaryStructureError):
        loads_dictionary(text, Word, config={"allow_string_literals": False})


def test_decoder_config_validation() -> None:
    with pytest.raises(ValueError):
        DecoderConfig(max_records=256)

    merged = coerce_config({"max_records": 10}, DecoderConfig, DecoderConfig)
    assert merged == DecoderConfig(max_records=10)

    with pytest.raises(TypeError):
        coerce_config({"limit": 10}, DecoderConfig, DecoderConfig)
