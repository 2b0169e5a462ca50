"""SQLite client built on the standard library ``sqlite3`` driver.

Parameters are bound by name, so generated ``@name`` placeholders work as-is.
Connections run in autocommit mode unless an ``isolation_level`` is given.
"""

import datetime
import sqlite3
from contextlib import closing
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Final, Optional
from uuid import UUID

from fluidsql.core.command import CommandBehavior, CommandType, ConnectionState
from fluidsql.core.handlers import StateChangeEvent
from fluidsql.exceptions import ImproperConfigurationError
from fluidsql.utils.logging import get_logger

if TYPE_CHECKING:
    from types import TracebackType

    from fluidsql.core.command import DbParameter
    from fluidsql.core.handlers import InfoMessageEvent

__all__ = (
    "SqliteCommand",
    "SqliteConnection",
    "SqliteReader",
    "coerce_value",
    "split_statements",
)

logger = get_logger("adapters.sqlite")

_PARAMETER_PREFIXES: Final[str] = "@:$"

_TYPE_COERCION_MAP: "Final[dict[type, Callable[[Any], Any]]]" = {
    bool: int,
    Decimal: str,
    datetime.datetime: lambda v: v.isoformat(),
    datetime.date: lambda v: v.isoformat(),
    datetime.time: lambda v: v.isoformat(),
    UUID: str,
    bytearray: bytes,
    memoryview: bytes,
}


def coerce_value(value: Any) -> Any:
    """Convert a Python value to one sqlite3 binds natively."""
    converter = _TYPE_COERCION_MAP.get(type(value))
    return value if converter is None else converter(value)


def split_statements(sql: str) -> "list[str]":
    """Split a batch on ``;`` boundaries that end a complete statement.

    Semicolons inside literals and comments are left alone, ``sqlite3`` decides
    where a statement is complete.
    """
    statements: list[str] = []
    pending: list[str] = []
    for piece in sql.split(";"):
        pending.append(piece)
        candidate = ";".join(pending)
        if sqlite3.complete_statement(f"{candidate};"):
            if candidate.strip():
                statements.append(candidate.strip())
            pending = []
    if pending and (rest := ";".join(pending).strip()):
        statements.append(rest)
    return statements


class SqliteReader:
    """Forward-only reader over a ``sqlite3.Cursor``."""

    __slots__ = ("_behavior", "_blob", "_closed", "_cursor", "_names", "_row", "_rows_read")

    def __init__(self, cursor: "sqlite3.Cursor", behavior: CommandBehavior = CommandBehavior.DEFAULT) -> None:
        self._cursor = cursor
        self._behavior = behavior
        self._names = [column[0] for column in cursor.description or ()]
        self._row: Optional[tuple[Any, ...]] = None
        self._blob: Optional[tuple[int, memoryview]] = None
        self._rows_read = 0
        self._closed = False

    def __enter__(self) -> "SqliteReader":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()

    @property
    def field_count(self) -> int:
        return len(self._names)

    @property
    def is_closed(self) -> bool:
        return self._closed

    def read(self) -> bool:
        if self._closed:
            msg = "Cannot read from a closed reader."
            raise sqlite3.ProgrammingError(msg)
        self._blob = None
        if self._behavior is CommandBehavior.SINGLE_ROW and self._rows_read:
            self._row = None
            return False
        self._row = self._cursor.fetchone()
        if self._row is None:
            return False
        self._rows_read += 1
        return True

    def get_name(self, ordinal: int) -> str:
        return self._names[ordinal]

    def get_ordinal(self, name: str) -> int:
        """Resolve a column name, exact match first and then case-insensitively."""
        if name in self._names:
            return self._names.index(name)
        lowered = name.lower()
        for ordinal, column in enumerate(self._names):
            if column.lower() == lowered:
                return ordinal
        msg = f"Column {name!r} is not part of the result"
        raise IndexError(msg)

    def get_value(self, ordinal: int) -> Any:
        if self._row is None:
            msg = "No current row. Call read() first."
            raise sqlite3.ProgrammingError(msg)
        return self._row[ordinal]

    def get_bytes(self, ordinal: int, offset: int, buffer: "bytearray") -> int:
        if self._blob is None or self._blob[0] != ordinal:
            value = self.get_value(ordinal)
            if value is None:
                return 0
            data = value.encode() if isinstance(value, str) else value
            self._blob = (ordinal, memoryview(data))
        chunk = self._blob[1][offset : offset + len(buffer)]
        buffer[: len(chunk)] = chunk
        return len(chunk)

    def close(self) -> None:
        if not self._closed:
            self._blob = None
            self._cursor.close()
            self._closed = True


class SqliteCommand:
    """A command bound to a :class:`SqliteConnection`."""

    __slots__ = ("command_text", "command_type", "connection", "parameters")

    def __init__(self, connection: "SqliteConnection", command_text: str, command_type: CommandType) -> None:
        self.connection = connection
        self.command_text = command_text
        self.command_type = command_type
        self.parameters: list[DbParameter] = []

    def _statements(self) -> "list[str]":
        if self.command_type is CommandType.STORED_PROCEDURE:
            msg = f"SQLite does not support stored procedures, cannot execute {self.command_text!r}"
            raise ImproperConfigurationError(msg)
        if self.command_type is CommandType.TABLE_DIRECT:
            return [f"select * from {self.command_text}"]
        return split_statements(self.command_text)

    def _bound_parameters(self) -> "dict[str, Any]":
        return {p.name.lstrip(_PARAMETER_PREFIXES): coerce_value(p.value) for p in self.parameters if p.is_input}

    def _run(self, cursor: "sqlite3.Cursor") -> None:
        parameters = self._bound_parameters()
        for statement in self._statements():
            cursor.execute(statement, parameters)

    def execute_non_query(self) -> int:
        with closing(self.connection.cursor()) as cursor:
            self._run(cursor)
            return cursor.rowcount

    def execute_scalar(self) -> Any:
        with closing(self.connection.cursor()) as cursor:
            self._run(cursor)
            row = cursor.fetchone()
            return None if row is None else row[0]

    def execute_reader(self, behavior: CommandBehavior = CommandBehavior.DEFAULT) -> SqliteReader:
        cursor = self.connection.cursor()
        try:
            self._run(cursor)
        except BaseException:
            cursor.close()
            raise
        return SqliteReader(cursor, behavior)


class SqliteConnection:
    """One lazily opened ``sqlite3`` connection.

    SQLite raises no informational messages; info listeners are accepted and
    never called.
    """

    dialect = "sqlite"
    error_types: "tuple[type[BaseException], ...]" = (sqlite3.Error,)

    def __init__(self, database: str = ":memory:", **connection_parameters: Any) -> None:
        connection_parameters.setdefault("isolation_level", None)
        self._database = database
        self._connection_parameters = connection_parameters
        self._connection: Optional[sqlite3.Connection] = None
        self._state_listeners: list[Callable[[StateChangeEvent], Any]] = []
        self._info_listeners: list[Callable[[InfoMessageEvent], Any]] = []

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.CLOSED if self._connection is None else ConnectionState.OPEN

    @property
    def database(self) -> str:
        return self._database

    @property
    def native(self) -> "Optional[sqlite3.Connection]":
        return self._connection

    def add_state_change_listener(self, listener: "Callable[[StateChangeEvent], Any]") -> None:
        self._state_listeners.append(listener)

    def add_info_message_listener(self, listener: "Callable[[InfoMessageEvent], Any]") -> None:
        self._info_listeners.append(listener)

    def _set_state(self, original: ConnectionState) -> None:
        event = StateChangeEvent(original, self.state)
        for listener in list(self._state_listeners):
            listener(event)

    def open(self) -> None:
        if self._connection is not None:
            return
        logger.debug("Opening SQLite database %s", self._database)
        self._connection = sqlite3.connect(self._database, **self._connection_parameters)
        self._set_state(ConnectionState.CLOSED)

    def close(self) -> None:
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        connection.close()
        self._set_state(ConnectionState.OPEN)

    def change_database(self, name: str) -> None:
        """Point the connection at another database file, reopening it when open."""
        was_open = self._connection is not None
        self.close()
        self._database = name
        if was_open:
            self.open()

    def cursor(self) -> "sqlite3.Cursor":
        if self._connection is None:
            msg = "Cannot operate on a closed database."
            raise sqlite3.ProgrammingError(msg)
        return self._connection.cursor()

    def create_command(self, text: str, command_type: CommandType = CommandType.TEXT) -> SqliteCommand:
        return SqliteCommand(self, text, command_type)

    def __repr__(self) -> str:
        return f"SqliteConnection(database={self._database!r}, state={self.state.value})"
