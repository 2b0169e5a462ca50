from fluidsql import adapters, core, exceptions, utils
from fluidsql.__metadata__ import __version__
from fluidsql.config import ExecutorConfig
from fluidsql.core import (
    CommandBehavior,
    CommandExecutedEvent,
    CommandType,
    ConnectionState,
    CrudMode,
    DbParameter,
    FieldNameConverters,
    InfoMessageEvent,
    Lookup,
    ParameterDirection,
    StateChangeEvent,
    SuppressedExecutionFault,
    format_command_error,
)
from fluidsql.driver import FluidSQL
from fluidsql.exceptions import (
    CommandNotCreatedError,
    DatabaseExecutionError,
    DuplicateKeyError,
    DuplicateParameterError,
    FluidSQLError,
    ImproperConfigurationError,
    MissingOutputParameterError,
    NoReturnValueError,
)
from fluidsql.utils.schema import FieldMapper, SchemaFieldMapper

__all__ = (
    "CommandBehavior",
    "CommandExecutedEvent",
    "CommandNotCreatedError",
    "CommandType",
    "ConnectionState",
    "CrudMode",
    "DatabaseExecutionError",
    "DbParameter",
    "DuplicateKeyError",
    "DuplicateParameterError",
    "ExecutorConfig",
    "FieldMapper",
    "FieldNameConverters",
    "FluidSQL",
    "FluidSQLError",
    "ImproperConfigurationError",
    "InfoMessageEvent",
    "Lookup",
    "MissingOutputParameterError",
    "NoReturnValueError",
    "ParameterDirection",
    "SchemaFieldMapper",
    "StateChangeEvent",
    "SuppressedExecutionFault",
    "adapters",
    "core",
    "exceptions",
    "format_command_error",
    "utils",
    "__version__",
)
