"""Type guard functions for runtime type checking in FluidSQL.

Optional schema libraries (msgspec, pydantic, attrs) are imported only when
the corresponding ``*_INSTALLED`` flag is set.
"""

from collections.abc import Mapping
from dataclasses import fields as dataclass_fields
from typing import TYPE_CHECKING, Any, cast

from fluidsql.typing import ATTRS_INSTALLED, MSGSPEC_INSTALLED, PYDANTIC_INSTALLED

if TYPE_CHECKING:
    from typing_extensions import TypeGuard

__all__ = (
    "dataclass_to_dict",
    "has_dict_attribute",
    "is_attrs_instance",
    "is_attrs_schema",
    "is_dataclass",
    "is_dataclass_instance",
    "is_mapping",
    "is_msgspec_struct",
    "is_msgspec_struct_type",
    "is_pydantic_model",
    "is_pydantic_model_type",
    "is_typed_dict",
    "schema_dump",
)


def is_mapping(obj: Any) -> "TypeGuard[Mapping[str, Any]]":
    return isinstance(obj, Mapping)


def is_dataclass_instance(obj: Any) -> bool:
    """Check if an object is a dataclass instance.

    Args:
        obj: An object to check.

    Returns:
        True if the object is a dataclass instance.
    """
    return not isinstance(obj, type) and hasattr(type(obj), "__dataclass_fields__")


def is_dataclass(obj: Any) -> bool:
    """Check if an object is a dataclass, either the class or an instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if isinstance(obj, type) and hasattr(obj, "__dataclass_fields__"):
        return True
    return is_dataclass_instance(obj)


def is_typed_dict(obj: Any) -> bool:
    """Check if an object is a TypedDict class.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return isinstance(obj, type) and issubclass(obj, dict) and hasattr(obj, "__total__")


def is_pydantic_model(obj: Any) -> bool:
    if not PYDANTIC_INSTALLED:
        return False
    from pydantic import BaseModel

    return isinstance(obj, BaseModel)


def is_pydantic_model_type(obj: Any) -> bool:
    if not PYDANTIC_INSTALLED:
        return False
    from pydantic import BaseModel

    return isinstance(obj, type) and issubclass(obj, BaseModel)


def is_msgspec_struct(obj: Any) -> bool:
    if not MSGSPEC_INSTALLED:
        return False
    from msgspec import Struct

    return isinstance(obj, Struct)


def is_msgspec_struct_type(obj: Any) -> bool:
    if not MSGSPEC_INSTALLED:
        return False
    from msgspec import Struct

    return isinstance(obj, type) and issubclass(obj, Struct)


def is_attrs_instance(obj: Any) -> bool:
    if not ATTRS_INSTALLED:
        return False
    from attrs import has

    return not isinstance(obj, type) and has(type(obj))


def is_attrs_schema(obj: Any) -> bool:
    if not ATTRS_INSTALLED:
        return False
    from attrs import has

    return isinstance(obj, type) and has(obj)


def has_dict_attribute(obj: Any) -> bool:
    """Check if an object has a ``__dict__`` attribute.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return hasattr(obj, "__dict__")


def dataclass_to_dict(obj: Any) -> "dict[str, Any]":
    """Convert a dataclass instance to a dictionary.

    Unlike :func:`dataclasses.asdict` this does not deepcopy values and does
    not recurse into nested dataclasses, values are bound as they are.

    Args:
        obj: A dataclass instance.

    Returns:
        A dictionary of key/value pairs in field declaration order.
    """
    return {field.name: getattr(obj, field.name) for field in dataclass_fields(obj)}


def schema_dump(data: Any) -> "dict[str, Any]":
    """Dump a record to a dictionary of its fields.

    Args:
        data: A mapping, dataclass, pydantic model, msgspec Struct, attrs instance or plain object.

    Returns:
        :type:`dict[str, Any]`
    """
    if is_mapping(data):
        return dict(data)
    if is_dataclass_instance(data):
        return dataclass_to_dict(data)
    if is_pydantic_model(data):
        return cast("dict[str, Any]", data.model_dump())
    if is_msgspec_struct(data):
        return {f: getattr(data, f, None) for f in data.__struct_fields__}
    if is_attrs_instance(data):
        from attrs import asdict

        return asdict(data, recurse=False)
    if isinstance(data, tuple) and hasattr(data, "_asdict"):
        return dict(data._asdict())
    if has_dict_attribute(data):
        return {key: value for key, value in vars(data).items() if not key.startswith("_")}
    msg = f"Cannot extract fields from {type(data).__name__}"
    raise TypeError(msg)
