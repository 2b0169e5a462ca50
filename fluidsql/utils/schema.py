"""Field-map adapter and value conversion.

A field mapper turns a caller-supplied record into ``{name: value}`` pairs for
parameter binding, and turns a row mapping back into a structured record for
auto-mapping. :func:`to_value_type` converts a single database value to a
requested Python type.
"""

import datetime
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Callable, Final, Optional, Protocol, cast, runtime_checkable
from uuid import UUID

from fluidsql.exceptions import FluidSQLError
from fluidsql.typing import get_type_adapter
from fluidsql.utils.logging import get_logger
from fluidsql.utils.text import snake_case
from fluidsql.utils.type_guards import (
    is_attrs_schema,
    is_dataclass,
    is_msgspec_struct_type,
    is_pydantic_model_type,
    is_typed_dict,
    schema_dump,
)

if TYPE_CHECKING:
    from fluidsql.typing import SchemaT, ValueT

__all__ = (
    "FieldMapper",
    "SchemaFieldMapper",
    "to_schema",
    "to_value_type",
)

logger = get_logger("utils.schema")


@runtime_checkable
class FieldMapper(Protocol):
    """Converts records to field maps and back."""

    def to_fields(self, record: Any) -> "dict[str, Any]":
        """Decompose ``record``, a mapping or a record object, into ``{normalized_name: value}``."""
        ...

    def to_record(self, row: "Mapping[str, Any]", schema_type: "type[SchemaT]") -> "SchemaT":
        """Build an instance of ``schema_type`` from a row mapping."""
        ...


class SchemaFieldMapper:
    """Default field mapper for mappings, dataclasses, msgspec, pydantic, attrs and plain objects."""

    __slots__ = ("name_converter",)

    def __init__(self, name_converter: "Optional[Callable[[str], str]]" = None) -> None:
        self.name_converter = name_converter or snake_case

    def to_fields(self, record: Any) -> "dict[str, Any]":
        return {self.name_converter(name): value for name, value in schema_dump(record).items()}

    def to_record(self, row: "Mapping[str, Any]", schema_type: "type[SchemaT]") -> "SchemaT":
        normalized = {self.name_converter(name): value for name, value in row.items()}
        return to_schema(normalized, schema_type=schema_type)

    def __repr__(self) -> str:
        return f"SchemaFieldMapper(name_converter={getattr(self.name_converter, '__name__', self.name_converter)})"


# =============================================================================
# Schema Type Detection
# =============================================================================


@lru_cache(maxsize=128)
def _detect_schema_type(schema_type: type) -> "Optional[str]":
    return (
        "typed_dict"
        if is_typed_dict(schema_type)
        else "dataclass"
        if is_dataclass(schema_type)
        else "msgspec"
        if is_msgspec_struct_type(schema_type)
        else "pydantic"
        if is_pydantic_model_type(schema_type)
        else "attrs"
        if is_attrs_schema(schema_type)
        else None
    )


def _convert_typed_dict(data: "dict[str, Any]", schema_type: Any) -> Any:
    keys = schema_type.__required_keys__ | schema_type.__optional_keys__
    return {key: value for key, value in data.items() if key in keys}


def _convert_dataclass(data: "dict[str, Any]", schema_type: Any) -> Any:
    from dataclasses import fields

    names = {field.name for field in fields(schema_type) if field.init}
    return schema_type(**{key: value for key, value in data.items() if key in names})


def _convert_msgspec(data: "dict[str, Any]", schema_type: Any) -> Any:
    from msgspec import convert

    return convert(data, type=schema_type, strict=False)


def _convert_pydantic(data: "dict[str, Any]", schema_type: Any) -> Any:
    return get_type_adapter(schema_type).validate_python(data)


def _convert_attrs(data: "dict[str, Any]", schema_type: Any) -> Any:
    from attrs import fields

    names = {field.alias or field.name for field in fields(schema_type) if field.init}
    return schema_type(**{key: value for key, value in data.items() if key in names})


_SCHEMA_CONVERTERS: "dict[str, Callable[[dict[str, Any], Any], Any]]" = {
    "typed_dict": _convert_typed_dict,
    "dataclass": _convert_dataclass,
    "msgspec": _convert_msgspec,
    "pydantic": _convert_pydantic,
    "attrs": _convert_attrs,
}


def to_schema(data: "dict[str, Any]", *, schema_type: Any = None) -> Any:
    """Convert a row mapping to a specified schema type.

    Columns that do not match a member of the schema are ignored.

    Args:
        data: Row mapping with normalized column names.
        schema_type: Target schema type. If None, returns data unchanged.

    Returns:
        Converted data in the specified schema type, or original data if schema_type is None

    Raises:
        FluidSQLError: If schema_type is not a supported type
    """
    if schema_type is None or schema_type is dict:
        return data

    schema_type_key = _detect_schema_type(schema_type)
    if schema_type_key is None:
        msg = "`schema_type` should be a valid Dataclass, Pydantic model, Msgspec struct, Attrs class, or TypedDict"
        raise FluidSQLError(msg)

    logger.debug("Mapping row onto %s (%s)", schema_type.__name__, schema_type_key)
    return _SCHEMA_CONVERTERS[schema_type_key](data, schema_type)


# =============================================================================
# Scalar Type Conversion
# =============================================================================

_BOOL_TRUE_VALUES: Final[frozenset[str]] = frozenset({"true", "1", "yes", "y", "t", "on"})


def _convert_to_int(value: Any) -> int:
    if isinstance(value, (bool, int, float, Decimal)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            # Try parsing as float first for values like "42.0"
            try:
                return int(float(value))
            except ValueError:
                pass
    msg = f"Cannot convert {type(value).__name__} to int"
    raise TypeError(msg)


def _convert_to_float(value: Any) -> float:
    if isinstance(value, (bool, int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
    msg = f"Cannot convert {type(value).__name__} to float"
    raise TypeError(msg)


def _convert_to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        return bool(value)
    if isinstance(value, str):
        return value.lower() in _BOOL_TRUE_VALUES
    msg = f"Cannot convert {type(value).__name__} to bool"
    raise TypeError(msg)


def _convert_to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value)
        except ValueError:
            pass
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time.min)
    msg = f"Cannot convert {type(value).__name__} to datetime"
    raise TypeError(msg)


def _convert_to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.date.fromisoformat(value)
        except ValueError:
            try:
                return datetime.datetime.fromisoformat(value).date()
            except ValueError:
                pass
    msg = f"Cannot convert {type(value).__name__} to date"
    raise TypeError(msg)


def _convert_to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, str):
        try:
            return datetime.time.fromisoformat(value)
        except ValueError:
            pass
    msg = f"Cannot convert {type(value).__name__} to time"
    raise TypeError(msg)


def _convert_to_decimal(value: Any) -> Decimal:
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            pass
    msg = f"Cannot convert {type(value).__name__} to Decimal"
    raise TypeError(msg)


def _convert_to_uuid(value: Any) -> UUID:
    if isinstance(value, str):
        try:
            return UUID(value)
        except ValueError:
            pass
    if isinstance(value, bytes):
        try:
            return UUID(bytes=value)
        except ValueError:
            pass
    msg = f"Cannot convert {type(value).__name__} to UUID"
    raise TypeError(msg)


def _convert_to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode()
    msg = f"Cannot convert {type(value).__name__} to bytes"
    raise TypeError(msg)


_VALUE_CONVERTERS: "dict[type, Callable[[Any], Any]]" = {
    int: _convert_to_int,
    float: _convert_to_float,
    str: str,
    bool: _convert_to_bool,
    datetime.datetime: _convert_to_datetime,
    datetime.date: _convert_to_date,
    datetime.time: _convert_to_time,
    Decimal: _convert_to_decimal,
    UUID: _convert_to_uuid,
    bytes: _convert_to_bytes,
}


def to_value_type(value: Any, value_type: "Optional[type[ValueT]]" = None) -> "ValueT":
    """Convert a database value to the specified Python type.

    ``None`` (SQL NULL) is returned unchanged, as is any value when
    ``value_type`` is not given.

    Args:
        value: The value to convert.
        value_type: The target Python type.

    Returns:
        The converted value of the specified type.

    Raises:
        TypeError: If the value cannot be converted to the specified type.

    Examples:
        >>> to_value_type("42", int)
        42
        >>> to_value_type(True, int)
        1
    """
    if value is None or value_type is None:
        return cast("ValueT", value)

    # bool is a subclass of int and datetime a subclass of date, so those need an exact match
    if value_type in (int, bool, datetime.date, datetime.time):
        if type(value) is value_type:
            return cast("ValueT", value)
    elif isinstance(value, value_type):
        return value

    converter = _VALUE_CONVERTERS.get(value_type)
    if converter is not None:
        return cast("ValueT", converter(value))

    try:
        return value_type(value)  # type: ignore[call-arg]
    except (TypeError, ValueError) as e:
        msg = f"Cannot convert {type(value).__name__} to {value_type.__name__}"
        raise TypeError(msg) from e
