from fluidsql.core.command import (
    CommandBehavior,
    CommandType,
    ConnectionState,
    DbParameter,
    ParameterDirection,
    identity_query_for,
)
from fluidsql.core.handlers import (
    CommandExecutedEvent,
    FieldNameConverters,
    HandlerRegistry,
    InfoMessageEvent,
    StateChangeEvent,
    SuppressedExecutionFault,
    format_command_error,
)
from fluidsql.core.parameters import CrudMode, CrudState, ParameterStore, regenerate
from fluidsql.core.result import Lookup

__all__ = (
    "CommandBehavior",
    "CommandExecutedEvent",
    "CommandType",
    "ConnectionState",
    "CrudMode",
    "CrudState",
    "DbParameter",
    "FieldNameConverters",
    "HandlerRegistry",
    "InfoMessageEvent",
    "Lookup",
    "ParameterDirection",
    "ParameterStore",
    "StateChangeEvent",
    "SuppressedExecutionFault",
    "format_command_error",
    "identity_query_for",
    "regenerate",
)
