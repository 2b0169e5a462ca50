"""Executor configuration."""

from typing import TYPE_CHECKING, Any, Callable, Final, Optional

from fluidsql.core.command import DEFAULT_BINARY_BUFFER_SIZE
from fluidsql.utils.schema import SchemaFieldMapper
from fluidsql.utils.text import snake_case

if TYPE_CHECKING:
    from fluidsql.utils.schema import FieldMapper

__all__ = ("ExecutorConfig",)

EXECUTOR_CONFIG_SLOTS: Final[tuple[str, ...]] = (
    "auto_close",
    "binary_buffer_size",
    "field_mapper",
    "name_converter",
    "parameter_prefix",
)


class ExecutorConfig:
    """Settings shared by every command an executor builds and runs."""

    __slots__ = EXECUTOR_CONFIG_SLOTS

    def __init__(
        self,
        auto_close: bool = True,
        binary_buffer_size: int = DEFAULT_BINARY_BUFFER_SIZE,
        field_mapper: "Optional[FieldMapper]" = None,
        name_converter: "Optional[Callable[[str], str]]" = None,
        parameter_prefix: str = "@",
    ) -> None:
        """Initialize the executor configuration.

        Args:
            auto_close: Close the connection once a command's data has been read
            binary_buffer_size: Default chunk size for binary streaming
            field_mapper: Converts records to parameter maps and rows to records
            name_converter: Applied once to every parameter name on insertion (default: snake_case)
            parameter_prefix: Placeholder prefix used in generated INSERT/UPDATE text
        """
        if binary_buffer_size <= 0:
            msg = f"binary_buffer_size must be positive, got {binary_buffer_size}"
            raise ValueError(msg)
        self.auto_close = auto_close
        self.binary_buffer_size = binary_buffer_size
        self.name_converter = name_converter or snake_case
        self.field_mapper = field_mapper or SchemaFieldMapper(self.name_converter)
        self.parameter_prefix = parameter_prefix

    def replace(self, **kwargs: Any) -> "ExecutorConfig":
        """Return a copy with the given attributes replaced.

        Args:
            **kwargs: Attributes to update

        Returns:
            New ExecutorConfig instance with updated attributes
        """
        for key in kwargs:
            if key not in EXECUTOR_CONFIG_SLOTS:
                msg = f"{key!r} is not a field in {type(self).__name__}"
                raise TypeError(msg)

        current_kwargs = {slot: getattr(self, slot) for slot in EXECUTOR_CONFIG_SLOTS}
        current_kwargs.update(kwargs)
        return type(self)(**current_kwargs)

    def __repr__(self) -> str:
        field_strs = [f"{slot}={getattr(self, slot)!r}" for slot in EXECUTOR_CONFIG_SLOTS]
        return f"{type(self).__name__}({', '.join(field_strs)})"
