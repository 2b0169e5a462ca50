"""Parameter store and generated INSERT/UPDATE command text.

The store is an insertion-ordered mapping of normalized parameter names to
values. While a generated CRUD command is active, the command text is a pure
function of the CRUD state and the store's keys, see :func:`regenerate`.
"""

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from fluidsql.exceptions import DuplicateParameterError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fluidsql.typing import ParameterValue

__all__ = (
    "CrudMode",
    "CrudState",
    "ParameterStore",
    "is_blank",
    "regenerate",
    "render_insert",
    "render_update",
)


class CrudMode(str, Enum):
    """Generated-SQL mode of the executor."""

    NONE = "none"
    INSERT = "insert"
    UPDATE = "update"


def _identity(name: str) -> str:
    return name


def is_blank(value: Any) -> bool:
    """Blank means the empty string, whitespace-only strings are kept."""
    return isinstance(value, str) and value == ""


class ParameterStore:
    """Insertion-ordered ``name -> value`` mapping with unique names.

    Names pass through ``name_converter`` once, when they are inserted.
    """

    __slots__ = ("_name_converter", "_values")

    def __init__(self, name_converter: "Optional[Callable[[str], str]]" = None) -> None:
        self._name_converter = name_converter or _identity
        self._values: dict[str, ParameterValue] = {}

    def normalize(self, name: str) -> str:
        return self._name_converter(name)

    def add(self, name: str, value: "ParameterValue") -> str:
        """Insert a new parameter.

        Args:
            name: Parameter name before normalization.
            value: Parameter value, ``None`` is bound as SQL NULL.

        Raises:
            DuplicateParameterError: The normalized name is already present.

        Returns:
            The normalized name.
        """
        key = self.normalize(name)
        if key in self._values:
            raise DuplicateParameterError(key)
        self._values[key] = value
        return key

    def merge(self, values: "Mapping[str, ParameterValue]") -> None:
        """Add or overwrite parameters, existing names keep their position."""
        for name, value in values.items():
            self._values[self.normalize(name)] = value

    def remove(self, name: str) -> bool:
        """Remove a parameter if present.

        Returns:
            True when something was removed.
        """
        key = self.normalize(name)
        if key not in self._values:
            return False
        del self._values[key]
        return True

    def remove_where(self, predicate: "Callable[[ParameterValue], bool]") -> "list[str]":
        """Remove every parameter whose value matches ``predicate``.

        Returns:
            The removed names in store order.
        """
        removed = [key for key, value in self._values.items() if predicate(value)]
        for key in removed:
            del self._values[key]
        return removed

    def keys(self) -> "list[str]":
        return list(self._values)

    def items(self) -> "list[tuple[str, ParameterValue]]":
        return list(self._values.items())

    def as_dict(self) -> "dict[str, ParameterValue]":
        return dict(self._values)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.normalize(name) in self._values

    def __getitem__(self, name: str) -> "ParameterValue":
        return self._values[self.normalize(name)]

    def __iter__(self) -> "Iterator[str]":
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ParameterStore({self._values!r})"


class CrudState:
    """Everything the generated command text depends on, apart from the parameter names."""

    __slots__ = ("mode", "table", "where")

    def __init__(
        self, mode: CrudMode = CrudMode.NONE, table: "Optional[str]" = None, where: "Optional[str]" = None
    ) -> None:
        self.mode = mode
        self.table = table
        self.where = where

    def reset(self) -> None:
        self.mode = CrudMode.NONE
        self.table = None
        self.where = None

    def __repr__(self) -> str:
        return f"CrudState(mode={self.mode.value}, table={self.table!r}, where={self.where!r})"


def render_insert(table: str, keys: "Sequence[str]", prefix: str = "@") -> str:
    columns = ", ".join(keys)
    placeholders = ", ".join(f"{prefix}{key}" for key in keys)
    return f"insert into {table} ({columns}) values ({placeholders})"


def render_update(table: str, keys: "Sequence[str]", where: str, prefix: str = "@") -> str:
    assignments = ", ".join(f"{key} = {prefix}{key}" for key in keys)
    return f"update {table} set {assignments} where {where}"


def regenerate(state: CrudState, keys: "Sequence[str]", prefix: str = "@") -> "Optional[str]":
    """Render the command text for the current CRUD state.

    Args:
        state: Active CRUD mode, table and where clause.
        keys: Parameter names in store order.
        prefix: Placeholder prefix of the dialect.

    Returns:
        The full command text, or ``None`` when no CRUD command is active.
    """
    if state.mode is CrudMode.INSERT and state.table is not None:
        return render_insert(state.table, keys, prefix)
    if state.mode is CrudMode.UPDATE and state.table is not None:
        return render_update(state.table, keys, state.where or "", prefix)
    return None
