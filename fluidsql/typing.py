from collections.abc import Callable
from functools import lru_cache
from importlib.util import find_spec
from typing import TYPE_CHECKING, Any, Union

from typing_extensions import TypeAlias, TypeVar

if TYPE_CHECKING:
    from pydantic import TypeAdapter

__all__ = (
    "ATTRS_INSTALLED",
    "MSGSPEC_INSTALLED",
    "PYDANTIC_INSTALLED",
    "ColumnRef",
    "FieldNameConverter",
    "KeyT",
    "ParameterValue",
    "SchemaT",
    "T",
    "ValueT",
    "get_type_adapter",
    "module_available",
)


def module_available(name: str) -> bool:
    """Check whether an optional dependency can be imported.

    Args:
        name: Top level module name.

    Returns:
        True when the module is installed.
    """
    try:
        return find_spec(name) is not None
    except (ImportError, ValueError):  # pragma: no cover
        return False


MSGSPEC_INSTALLED = module_available("msgspec")
PYDANTIC_INSTALLED = module_available("pydantic")
ATTRS_INSTALLED = module_available("attrs")


T = TypeVar("T")
KeyT = TypeVar("KeyT")
ValueT = TypeVar("ValueT")
SchemaT = TypeVar("SchemaT")

ParameterValue: TypeAlias = "Union[None, bool, int, float, str, bytes, Any]"
"""Any scalar, byte blob or ``None`` (bound as SQL NULL)."""
ColumnRef: TypeAlias = "Union[int, str]"
"""A column addressed by ordinal or by name."""
FieldNameConverter: TypeAlias = "Callable[[str], str]"
"""Callable taking a column or field name and returning the converted name."""


@lru_cache(typed=True)
def get_type_adapter(f: "type[T]") -> "TypeAdapter[T]":
    """Caches and returns a pydantic type adapter.

    Args:
        f: Type to create a type adapter for.

    Returns:
        :class:`pydantic.TypeAdapter`[:class:`typing.TypeVar`[T]]
    """
    from pydantic import TypeAdapter

    return TypeAdapter(f)
