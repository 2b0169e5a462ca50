"""Fluent command builder and executor.

:class:`FluidSQL` owns one connection and one live command. Builder methods
mutate the parameter store and command, execute methods all run through a
single pipeline:

1. wire newly registered info and state-change handlers, open the connection
2. bind the parameter store, output and return value parameters
3. run the client primitive under a timer
4. count the execution, raise the executed event and, for read-to-completion
   calls, close the connection when ``auto_close`` is set

Database faults are raised as :class:`DatabaseExecutionError` when no error
handler is registered. Otherwise every handler is called and the call returns
an empty default for its result type.
"""

import time
from collections.abc import Generator
from contextlib import contextmanager
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

from fluidsql.config import ExecutorConfig
from fluidsql.core.command import (
    RETURN_VALUE_PARAMETER_NAME,
    CommandBehavior,
    CommandType,
    ConnectionState,
    DbParameter,
    ParameterDirection,
    identity_query_for,
)
from fluidsql.core.handlers import CommandExecutedEvent, HandlerRegistry, SuppressedExecutionFault
from fluidsql.core.parameters import CrudMode, CrudState, ParameterStore, is_blank, regenerate
from fluidsql.core.result import Lookup, build_vertical_dictionary, column_value, copy_column_bytes, row_to_dict
from fluidsql.exceptions import (
    CommandNotCreatedError,
    DatabaseExecutionError,
    DuplicateParameterError,
    MissingOutputParameterError,
    NoReturnValueError,
)
from fluidsql.utils.logging import get_logger, log_fields
from fluidsql.utils.schema import to_value_type

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from fluidsql.core.handlers import ErrorHandler, ExecutedHandler, InfoHandler, StateChangeHandler
    from fluidsql.protocols import CommandProtocol, ConnectionProtocol, ReaderProtocol, WritableStream
    from fluidsql.typing import ColumnRef, FieldNameConverter, ParameterValue

__all__ = ("FluidSQL",)

logger = get_logger("driver")

ResultT = TypeVar("ResultT")


def _pair_reader(
    key_column: "ColumnRef",
    value_column: "ColumnRef",
    key_type: "Optional[type[Any]]",
    value_type: "Optional[type[Any]]",
) -> "Callable[[ReaderProtocol], tuple[Any, Any]]":
    def read_pair(reader: "ReaderProtocol") -> "tuple[Any, Any]":
        return column_value(reader, key_column, key_type), column_value(reader, value_column, value_type)

    return read_pair


class FluidSQL:
    """Builds and executes commands against a single connection."""

    __slots__ = (
        "_crud",
        "_output_parameters",
        "_return_value",
        "_return_value_ready",
        "_wired_info_handlers",
        "_wired_state_handlers",
        "auto_close",
        "command",
        "command_execution_count",
        "config",
        "connection",
        "handlers",
        "last_elapsed",
        "last_fault",
        "parameters",
        "records_affected",
    )

    def __init__(
        self,
        connection: "ConnectionProtocol",
        *,
        auto_close: "Optional[bool]" = None,
        config: "Optional[ExecutorConfig]" = None,
    ) -> None:
        """Initialize the executor.

        Args:
            connection: The connection this executor owns. It is opened lazily.
            auto_close: Close the connection after each read-to-completion call.
                Overrides ``config.auto_close`` when given.
            config: Executor configuration.
        """
        self.config = config or ExecutorConfig()
        self.connection = connection
        self.auto_close = self.config.auto_close if auto_close is None else auto_close
        self.command: Optional[CommandProtocol] = None
        self.parameters = ParameterStore(self.config.name_converter)
        self.handlers = HandlerRegistry()
        self.command_execution_count = 0
        self.records_affected = 0
        self.last_elapsed = 0.0
        self.last_fault: Optional[SuppressedExecutionFault] = None
        self._crud = CrudState()
        self._output_parameters: dict[str, DbParameter] = {}
        self._return_value: Optional[DbParameter] = None
        self._return_value_ready = False
        self._wired_info_handlers = 0
        self._wired_state_handlers = 0

    def __enter__(self) -> "FluidSQL":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()

    def close(self) -> None:
        if self.connection.state is not ConnectionState.CLOSED:
            self.connection.close()

    @property
    def crud_mode(self) -> CrudMode:
        return self._crud.mode

    @property
    def faulted(self) -> bool:
        """True when the last execute call swallowed a fault through the error handlers."""
        return self.last_fault is not None

    # -- Handlers ----------------------------------------------------------------------------------

    def error(self, handler: "ErrorHandler") -> "FluidSQL":
        self.handlers.error_handlers.append(handler)
        return self

    def info(self, handler: "InfoHandler") -> "FluidSQL":
        self.handlers.info_handlers.append(handler)
        return self

    def connection_state_change(self, handler: "StateChangeHandler") -> "FluidSQL":
        self.handlers.state_change_handlers.append(handler)
        return self

    def executed_handler(self, handler: "ExecutedHandler") -> "FluidSQL":
        self.handlers.executed_handlers.append(handler)
        return self

    def change_database(self, name: str) -> "FluidSQL":
        """Switch the connection to another database, opening it first if needed."""
        self._open_connection()
        self.connection.change_database(name)
        return self

    # -- Parameters --------------------------------------------------------------------------------

    def add_parameter(self, name: str, value: "ParameterValue") -> "FluidSQL":
        """Add a single parameter.

        Raises:
            DuplicateParameterError: The normalized name is already present.
        """
        self.parameters.add(name, value)
        self._regenerate()
        return self

    def add_parameters(self, parameters: Any) -> "FluidSQL":
        """Add every field of a mapping or record as a parameter.

        ``None`` is ignored. There is no rollback: on a duplicate name the
        parameters added before it stay in the store.
        """
        if parameters is None:
            return self
        for name, value in self._to_fields(parameters).items():
            self.add_parameter(name, value)
        return self

    def remove_parameter(self, name: str) -> "FluidSQL":
        self.parameters.remove(name)
        self._regenerate()
        return self

    def remove_null_parameters(self) -> "FluidSQL":
        self.parameters.remove_where(lambda value: value is None)
        self._regenerate()
        return self

    def remove_blank_parameters(self) -> "FluidSQL":
        self.parameters.remove_where(is_blank)
        self._regenerate()
        return self

    def remove_null_and_blank_parameters(self) -> "FluidSQL":
        self.remove_null_parameters()
        return self.remove_blank_parameters()

    def add_output_parameter(self, name: str, db_type: str, size: int = -1) -> "FluidSQL":
        """Declare an output parameter, readable after the command has run."""
        if name in self._output_parameters:
            raise DuplicateParameterError(name)
        self._output_parameters[name] = DbParameter(name, None, ParameterDirection.OUTPUT, db_type, size)
        return self

    def get_output_parameter(self, name: str, value_type: "Optional[type[ResultT]]" = None) -> Any:
        try:
            parameter = self._output_parameters[name]
        except KeyError:
            raise MissingOutputParameterError(name) from None
        return to_value_type(parameter.value, value_type)

    def get_return_value(self, value_type: "Optional[type[ResultT]]" = None) -> Any:
        """Read the procedure return value.

        Raises:
            NoReturnValueError: No stored procedure command was created, or it has not run yet.
        """
        if self._return_value is None:
            raise NoReturnValueError
        if not self._return_value_ready:
            msg = "The return value is not available until the procedure has executed"
            raise NoReturnValueError(msg)
        return to_value_type(self._return_value.value, value_type)

    # -- Command creation --------------------------------------------------------------------------

    def create_text_command(self, command_text: str, parameters: Any = None) -> "FluidSQL":
        self._create_command(command_text, CommandType.TEXT, parameters)
        return self

    def create_procedure_command(self, procedure_name: str, parameters: Any = None) -> "FluidSQL":
        self._create_command(procedure_name, CommandType.STORED_PROCEDURE, parameters)
        return self

    def create_table_direct_command(self, table: str) -> "FluidSQL":
        self._create_command(table, CommandType.TABLE_DIRECT)
        return self

    def create_insert_command(self, table: str, fields: Any) -> "FluidSQL":
        """Generate ``insert into {table} (...) values (...)`` from the parameter store.

        ``fields`` is merged into the store, the text is regenerated whenever
        parameters are added or removed afterwards.
        """
        self._create_command("", CommandType.TEXT)
        self.parameters.merge(self._to_fields(fields))
        self._crud.mode = CrudMode.INSERT
        self._crud.table = table
        self._regenerate()
        return self

    def create_update_command(self, table: str, fields: Any, where: str) -> "FluidSQL":
        """Generate ``update {table} set ... where {where}`` from the parameter store.

        ``where`` is inserted verbatim and must be trusted SQL.
        """
        self._create_command("", CommandType.TEXT)
        self.parameters.merge(self._to_fields(fields))
        self._crud.mode = CrudMode.UPDATE
        self._crud.table = table
        self._crud.where = where
        self._regenerate()
        return self

    def describe_command(self) -> str:
        """Human readable rendering of the pending command, for diagnostics."""
        command = self._require_command()
        if command.command_type is not CommandType.STORED_PROCEDURE:
            return command.command_text

        arguments = self.parameters.items()
        arguments.extend((p.name, p.value) for p in self._output_parameters.values())
        description = f"exec {command.command_text}"
        if arguments:
            rendered = ", ".join(f"@{name} = {'NULL' if value is None else value}" for name, value in arguments)
            description = f"{description} {rendered}"
        return description

    # -- Execution ---------------------------------------------------------------------------------

    def execute_non_query(self) -> "FluidSQL":
        self._execute_non_query()
        return self

    def execute_records_affected(self) -> int:
        return self._execute_non_query()

    def execute_return_value(self, value_type: "Optional[type[ResultT]]" = None) -> Any:
        """Run the procedure and return its return value.

        Raises:
            NoReturnValueError: The current command is not a stored procedure.
        """
        if self._return_value is None:
            raise NoReturnValueError
        self._execute_non_query()
        if self.faulted:
            return None
        return self.get_return_value(value_type)

    def execute_scalar(
        self,
        command_text: "Optional[str]" = None,
        parameters: Any = None,
        *,
        value_type: "Optional[type[ResultT]]" = None,
    ) -> Any:
        """Return the first column of the first row.

        Args:
            command_text: When given, a new text command is created first.
            parameters: Parameters added along with ``command_text``.
            value_type: Convert the value to this type, NULL stays ``None``.
        """
        if command_text is not None:
            self._create_command(command_text, CommandType.TEXT, parameters)
        value = self._execute(lambda command: command.execute_scalar(), data_read_complete=True)
        return to_value_type(value, value_type)

    def execute_scope_identity(self, value_type: "Optional[type[ResultT]]" = None) -> Any:
        """Append the dialect's last-identity query to the command and run it as a scalar.

        The command text keeps the appended clause afterwards.
        """
        command = self._require_command()
        command.command_text = f"{command.command_text}; {identity_query_for(self.connection.dialect)}"
        return self.execute_scalar(value_type=value_type)

    def execute_and_transform(self, converter: "Callable[[ReaderProtocol], ResultT]") -> "list[ResultT]":
        """Run a reader to completion, converting each row with ``converter``.

        ``converter`` receives the reader positioned on the current row.
        """
        with self._reader_scope() as reader:
            results = self._transform_all(reader, converter)
        self._on_data_read()
        return results

    def execute_dictionaries(
        self,
        field_name_converter: "Optional[FieldNameConverter]" = None,
        *,
        value_type: "Optional[type[Any]]" = None,
    ) -> "list[dict[str, Any]]":
        converter = partial(row_to_dict, field_name_converter=field_name_converter, value_type=value_type)
        return self.execute_and_transform(converter)

    def execute_vertical_dictionary(
        self,
        key_column: "ColumnRef" = 0,
        value_column: "ColumnRef" = 1,
        *,
        key_type: "Optional[type[Any]]" = None,
        value_type: "Optional[type[Any]]" = None,
    ) -> "dict[Any, Any]":
        """Map ``key_column`` to ``value_column`` across all rows.

        Raises:
            DuplicateKeyError: A key repeats.
        """
        pairs = self.execute_and_transform(_pair_reader(key_column, value_column, key_type, value_type))
        return build_vertical_dictionary(pairs)

    def execute_vertical_lookup(
        self,
        key_column: "ColumnRef" = 0,
        value_column: "ColumnRef" = 1,
        *,
        key_type: "Optional[type[Any]]" = None,
        value_type: "Optional[type[Any]]" = None,
    ) -> "Lookup[Any, Any]":
        pairs = self.execute_and_transform(_pair_reader(key_column, value_column, key_type, value_type))
        return Lookup(pairs)

    def execute_array(self, column: "ColumnRef" = 0, *, value_type: "Optional[type[Any]]" = None) -> "tuple[Any, ...]":
        return tuple(self.execute_and_transform(lambda reader: column_value(reader, column, value_type)))

    def execute_and_auto_map(self, schema_type: "type[ResultT]") -> "list[ResultT]":
        """Map each row onto ``schema_type`` by matching column names to its members."""
        mapper = self.config.field_mapper
        return self.execute_and_transform(lambda reader: mapper.to_record(row_to_dict(reader), schema_type))

    def execute_binary_stream(
        self, column_name: str, output: "WritableStream", buffer_size: "Optional[int]" = None
    ) -> int:
        """Copy a large binary column of the first row to ``output`` in bounded chunks.

        The reader is opened for sequential access and released before this
        returns. The connection is not closed afterwards, even with ``auto_close``.

        Returns:
            Number of bytes written.
        """
        size = self.config.binary_buffer_size if buffer_size is None else buffer_size
        if size <= 0:
            msg = f"buffer_size must be positive, got {size}"
            raise ValueError(msg)
        with self._reader_scope(CommandBehavior.SEQUENTIAL_ACCESS) as reader:
            if reader is None:
                return 0
            try:
                if not reader.read():
                    return 0
                return copy_column_bytes(reader, reader.get_ordinal(column_name), output, size)
            except self.connection.error_types as exc:
                self._on_fault(exc, "read")
                return 0

    # -- Internals ---------------------------------------------------------------------------------

    def _to_fields(self, fields: Any) -> "Mapping[str, Any]":
        if fields is None:
            return {}
        return self.config.field_mapper.to_fields(fields)

    def _require_command(self) -> "CommandProtocol":
        if self.command is None:
            raise CommandNotCreatedError
        return self.command

    def _create_command(self, command_text: str, command_type: CommandType, parameters: Any = None) -> None:
        self._crud.reset()
        self.command = self.connection.create_command(command_text, command_type)
        self._return_value = None
        self._return_value_ready = False
        self.add_parameters(parameters)
        if command_type is CommandType.STORED_PROCEDURE:
            self._return_value = DbParameter(RETURN_VALUE_PARAMETER_NAME, None, ParameterDirection.RETURN_VALUE)
        logger.debug(
            "Created %s command: %s",
            command_type.value,
            command_text,
            extra=log_fields(command=command_text, command_type=command_type.value),
        )

    def _regenerate(self) -> None:
        text = regenerate(self._crud, self.parameters.keys(), self.config.parameter_prefix)
        if text is not None and self.command is not None:
            self.command.command_text = text

    def _describe(self) -> "Optional[str]":
        return None if self.command is None else self.describe_command()

    def _wire_listeners(self) -> None:
        for handler in self.handlers.state_change_handlers[self._wired_state_handlers :]:
            self.connection.add_state_change_listener(partial(handler, self))
        self._wired_state_handlers = len(self.handlers.state_change_handlers)
        for handler in self.handlers.info_handlers[self._wired_info_handlers :]:
            self.connection.add_info_message_listener(partial(handler, self))
        self._wired_info_handlers = len(self.handlers.info_handlers)

    def _open_connection(self) -> bool:
        """Open the connection if needed.

        Returns:
            False when opening failed and the fault was suppressed.
        """
        if self.connection.state is ConnectionState.OPEN:
            return True
        try:
            self.connection.open()
        except self.connection.error_types as exc:
            self._on_fault(exc, "open")
            return False
        return True

    def _bind(self, command: "CommandProtocol") -> None:
        bound = [DbParameter(name, value) for name, value in self.parameters.items()]
        bound.extend(self._output_parameters.values())
        if self._return_value is not None:
            bound.append(self._return_value)
        command.parameters[:] = bound

    def _on_fault(self, error: BaseException, stage: str) -> None:
        description = self._describe()
        if not self.handlers.suppresses_errors:
            raise DatabaseExecutionError(error, description, stage) from error
        logger.warning(
            "Suppressed %s fault for %s: %s",
            stage,
            description,
            error,
            extra=log_fields(command=description, stage=stage, error_type=type(error).__name__),
        )
        self.last_fault = SuppressedExecutionFault(error, stage, description)
        self.handlers.dispatch_error(self, error)

    def _execute(
        self, primitive: "Callable[[CommandProtocol], ResultT]", *, data_read_complete: bool = False
    ) -> "Optional[ResultT]":
        command = self._require_command()
        self.last_fault = None
        self.last_elapsed = 0.0
        self._return_value_ready = False

        self._wire_listeners()
        if not self._open_connection():
            self._on_executed(command, data_read_complete)
            return None
        self._bind(command)

        try:
            started = time.perf_counter()
            try:
                result = primitive(command)
            finally:
                self.last_elapsed = time.perf_counter() - started
            self._return_value_ready = self._return_value is not None
            return result
        except self.connection.error_types as exc:
            self._on_fault(exc, "execute")
            return None
        finally:
            self._on_executed(command, data_read_complete)

    def _execute_non_query(self) -> int:
        affected = self._execute(lambda command: command.execute_non_query(), data_read_complete=True)
        self.records_affected = affected or 0
        return self.records_affected

    @contextmanager
    def _reader_scope(
        self, behavior: CommandBehavior = CommandBehavior.DEFAULT
    ) -> "Generator[Optional[ReaderProtocol], None, None]":
        """Open a reader for the current command and guarantee it is closed on every exit path.

        Yields ``None`` when the fault was suppressed.
        """
        reader = self._execute(lambda command: command.execute_reader(behavior))
        if reader is None:
            yield None
            return
        with reader:
            yield reader

    def _transform_all(
        self, reader: "Optional[ReaderProtocol]", converter: "Callable[[ReaderProtocol], ResultT]"
    ) -> "list[ResultT]":
        if reader is None:
            return []
        results: list[ResultT] = []
        try:
            while reader.read():
                results.append(converter(reader))
        except self.connection.error_types as exc:
            self._on_fault(exc, "read")
            return []
        return results

    def _on_executed(self, command: "CommandProtocol", data_read_complete: bool) -> None:
        self.command_execution_count += 1
        logger.debug(
            "Executed %s in %.6fs",
            command.command_text,
            self.last_elapsed,
            extra=log_fields(
                command=command.command_text,
                elapsed=self.last_elapsed,
                execution_count=self.command_execution_count,
            ),
        )
        self.handlers.dispatch_executed(self, CommandExecutedEvent(self.last_elapsed, command))
        if data_read_complete:
            self._on_data_read()

    def _on_data_read(self) -> None:
        if self.auto_close and self.connection.state is not ConnectionState.CLOSED:
            self.connection.close()
