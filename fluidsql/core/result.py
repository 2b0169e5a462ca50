"""Result materializers.

Each function here consumes the current row of a reader, or the pairs produced
from all rows, and builds one result shape. None of them advance the reader;
the executor owns iteration and cursor lifetime.
"""

from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, Generic, Optional

from fluidsql.exceptions import DuplicateKeyError
from fluidsql.typing import KeyT, ValueT
from fluidsql.utils.schema import to_value_type

if TYPE_CHECKING:
    from fluidsql.protocols import ReaderProtocol, WritableStream
    from fluidsql.typing import ColumnRef, FieldNameConverter

__all__ = (
    "Lookup",
    "build_vertical_dictionary",
    "column_value",
    "copy_column_bytes",
    "resolve_ordinal",
    "row_to_dict",
)


class Lookup(Mapping[KeyT, "tuple[ValueT, ...]"], Generic[KeyT, ValueT]):
    """One-to-many grouping of values by key, in first-seen key order."""

    __slots__ = ("_groups",)

    def __init__(self, pairs: "Optional[Iterable[tuple[KeyT, ValueT]]]" = None) -> None:
        self._groups: dict[KeyT, list[ValueT]] = {}
        for key, value in pairs or ():
            self._groups.setdefault(key, []).append(value)

    def __getitem__(self, key: KeyT) -> "tuple[ValueT, ...]":
        return tuple(self._groups[key])

    def __iter__(self) -> "Iterator[KeyT]":
        return iter(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def group(self, key: KeyT) -> "tuple[ValueT, ...]":
        """Values for ``key``, empty when the key is absent."""
        return tuple(self._groups.get(key, ()))

    def __repr__(self) -> str:
        return f"Lookup({self._groups!r})"


def resolve_ordinal(reader: "ReaderProtocol", column: "ColumnRef") -> int:
    return column if isinstance(column, int) else reader.get_ordinal(column)


def column_value(reader: "ReaderProtocol", column: "ColumnRef", value_type: "Optional[type[Any]]" = None) -> Any:
    """Read one column of the current row, optionally converted to ``value_type``."""
    return to_value_type(reader.get_value(resolve_ordinal(reader, column)), value_type)


def row_to_dict(
    reader: "ReaderProtocol",
    field_name_converter: "Optional[FieldNameConverter]" = None,
    value_type: "Optional[type[Any]]" = None,
) -> "dict[str, Any]":
    """Materialize the current row as ``{column_name: value}``."""
    row: dict[str, Any] = {}
    for ordinal in range(reader.field_count):
        name = reader.get_name(ordinal)
        if field_name_converter is not None:
            name = field_name_converter(name)
        row[name] = to_value_type(reader.get_value(ordinal), value_type)
    return row


def build_vertical_dictionary(pairs: "Iterable[tuple[KeyT, ValueT]]") -> "dict[KeyT, ValueT]":
    """Build a one-to-one map.

    Raises:
        DuplicateKeyError: A key appears more than once.
    """
    result: dict[KeyT, ValueT] = {}
    for key, value in pairs:
        if key in result:
            raise DuplicateKeyError(key)
        result[key] = value
    return result


def copy_column_bytes(reader: "ReaderProtocol", ordinal: int, output: "WritableStream", buffer_size: int) -> int:
    """Copy one column of the current row to ``output`` in chunks of at most ``buffer_size`` bytes.

    A single read buffer is allocated and reused, the column is never held whole.
    Each chunk is handed to ``output`` as its own ``bytes`` object, so sinks may
    keep references to what they receive.

    Returns:
        Total number of bytes written.
    """
    if buffer_size <= 0:
        msg = f"buffer_size must be positive, got {buffer_size}"
        raise ValueError(msg)

    buffer = bytearray(buffer_size)
    view = memoryview(buffer)
    position = 0
    while (bytes_read := reader.get_bytes(ordinal, position, buffer)) > 0:
        output.write(bytes(view[:bytes_read]))
        position += bytes_read
    return position
