"""Tests for the result shapes built from reader rows."""

import io
from typing import Any

import pytest

from fluidsql.core.result import (
    Lookup,
    build_vertical_dictionary,
    column_value,
    copy_column_bytes,
    resolve_ordinal,
    row_to_dict,
)
from fluidsql.exceptions import DuplicateKeyError
from fluidsql.utils.text import camelize


class RowReader:
    """Reader positioned on a single row."""

    def __init__(self, columns: "list[str]", row: "tuple[Any, ...]") -> None:
        self.columns = columns
        self.row = row
        self.requests: list[int] = []

    @property
    def field_count(self) -> int:
        return len(self.columns)

    def get_name(self, ordinal: int) -> str:
        return self.columns[ordinal]

    def get_ordinal(self, name: str) -> int:
        return self.columns.index(name)

    def get_value(self, ordinal: int) -> Any:
        return self.row[ordinal]

    def get_bytes(self, ordinal: int, offset: int, buffer: bytearray) -> int:
        self.requests.append(len(buffer))
        chunk = self.row[ordinal][offset : offset + len(buffer)]
        buffer[: len(chunk)] = chunk
        return len(chunk)


class ChunkSink:
    def __init__(self) -> None:
        self.chunks: list[bytes] = []

    def write(self, data: Any) -> int:
        self.chunks.append(bytes(data))
        return len(data)


def test_lookup_groups_in_first_seen_order() -> None:
    lookup = Lookup([("x", 1), ("y", 2), ("x", 3)])

    assert list(lookup) == ["x", "y"]
    assert lookup["x"] == (1, 3)
    assert lookup["y"] == (2,)
    assert len(lookup) == 2


def test_lookup_absent_key() -> None:
    lookup: Lookup[str, int] = Lookup()

    assert lookup.group("missing") == ()
    with pytest.raises(KeyError):
        lookup["missing"]


def test_vertical_dictionary() -> None:
    assert build_vertical_dictionary([(1, "a"), (2, "b")]) == {1: "a", 2: "b"}


def test_vertical_dictionary_rejects_duplicate_key() -> None:
    with pytest.raises(DuplicateKeyError) as exc_info:
        build_vertical_dictionary([("x", 1), ("y", 2), ("x", 3)])
    assert exc_info.value.key == "x"


def test_resolve_ordinal_by_name_and_index() -> None:
    reader = RowReader(["id", "name"], (1, "Ada"))
    assert resolve_ordinal(reader, 1) == 1
    assert resolve_ordinal(reader, "name") == 1


def test_column_value_with_conversion() -> None:
    reader = RowReader(["id", "total"], ("7", None))

    assert column_value(reader, "id", int) == 7
    assert column_value(reader, "total", int) is None


def test_row_to_dict_with_converter() -> None:
    reader = RowReader(["first_name", "age"], ("Ada", 36))

    assert row_to_dict(reader) == {"first_name": "Ada", "age": 36}
    assert row_to_dict(reader, camelize) == {"firstName": "Ada", "age": 36}


def test_copy_column_bytes_chunks() -> None:
    payload = bytes(range(256)) * 40
    reader = RowReader(["data"], (payload,))
    sink = ChunkSink()

    written = copy_column_bytes(reader, 0, sink, 1000)

    assert written == len(payload)
    assert b"".join(sink.chunks) == payload
    assert len(sink.chunks) == 11
    assert all(len(chunk) <= 1000 for chunk in sink.chunks)
    assert set(reader.requests) == {1000}


def test_copy_column_bytes_exact_multiple() -> None:
    reader = RowReader(["data"], (b"a" * 64,))
    sink = ChunkSink()

    assert copy_column_bytes(reader, 0, sink, 16) == 64
    assert [len(chunk) for chunk in sink.chunks] == [16, 16, 16, 16]


def test_copy_column_bytes_empty_value() -> None:
    reader = RowReader(["data"], (b"",))
    output = io.BytesIO()

    assert copy_column_bytes(reader, 0, output, 16) == 0
    assert output.getvalue() == b""


def test_copy_column_bytes_rejects_bad_buffer() -> None:
    with pytest.raises(ValueError):
        copy_column_bytes(RowReader(["data"], (b"x",)), 0, io.BytesIO(), 0)


def test_copy_column_bytes_chunks_survive_buffer_reuse() -> None:
    kept: list[Any] = []

    class KeepingSink:
        def write(self, data: Any) -> int:
            kept.append(data)
            return len(data)

    written = copy_column_bytes(RowReader(["data"], (b"AAAABBBBCC",)), 0, KeepingSink(), 4)

    assert written == 10
    assert kept == [b"AAAA", b"BBBB", b"CC"]
    assert all(isinstance(chunk, bytes) for chunk in kept)
