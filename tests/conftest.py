from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

import pytest

from fluidsql import FluidSQL
from fluidsql.adapters.sqlite import SqliteConnection
from fluidsql.core.command import CommandBehavior, CommandType, ConnectionState, DbParameter, ParameterDirection
from fluidsql.core.handlers import InfoMessageEvent, StateChangeEvent

if TYPE_CHECKING:
    from collections.abc import Generator

here = Path(__file__).parent
root_path = here.parent


class FakeDatabaseError(Exception):
    """Stands in for a driver's database error class."""


class FakeResult:
    """Scripted outcome of one command text."""

    def __init__(
        self,
        columns: list[str] | None = None,
        rows: list[tuple[Any, ...]] | None = None,
        rowcount: int = 0,
        return_value: Any = None,
        outputs: dict[str, Any] | None = None,
        error: BaseException | None = None,
        read_error_at: int | None = None,
    ) -> None:
        self.columns = columns or []
        self.rows = rows or []
        self.rowcount = rowcount
        self.return_value = return_value
        self.outputs = outputs or {}
        self.error = error
        self.read_error_at = read_error_at


class FakeReader:
    def __init__(self, result: FakeResult, behavior: CommandBehavior) -> None:
        self.result = result
        self.behavior = behavior
        self.position = -1
        self.closed = False
        self.byte_requests: list[int] = []

    def __enter__(self) -> FakeReader:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def field_count(self) -> int:
        return len(self.result.columns)

    def read(self) -> bool:
        self.position += 1
        if self.result.read_error_at is not None and self.position == self.result.read_error_at:
            msg = "connection reset while reading"
            raise FakeDatabaseError(msg)
        return self.position < len(self.result.rows)

    def get_name(self, ordinal: int) -> str:
        return self.result.columns[ordinal]

    def get_ordinal(self, name: str) -> int:
        return self.result.columns.index(name)

    def get_value(self, ordinal: int) -> Any:
        return self.result.rows[self.position][ordinal]

    def get_bytes(self, ordinal: int, offset: int, buffer: bytearray) -> int:
        self.byte_requests.append(len(buffer))
        chunk = self.get_value(ordinal)[offset : offset + len(buffer)]
        buffer[: len(chunk)] = chunk
        return len(chunk)

    def close(self) -> None:
        self.closed = True


class FakeCommand:
    def __init__(self, connection: FakeConnection, command_text: str, command_type: CommandType) -> None:
        self.connection = connection
        self.command_text = command_text
        self.command_type = command_type
        self.parameters: list[DbParameter] = []

    def _run(self) -> FakeResult:
        if self.connection.state is not ConnectionState.OPEN:
            msg = "connection is closed"
            raise FakeDatabaseError(msg)
        snapshot = {p.name: p.value for p in self.parameters if p.is_input}
        self.connection.executed.append((self.command_text, self.command_type, snapshot))
        result = self.connection.results.get(self.command_text, FakeResult())
        if result.error is not None:
            raise result.error
        for parameter in self.parameters:
            if parameter.direction is ParameterDirection.RETURN_VALUE:
                parameter.value = result.return_value
            elif parameter.direction is ParameterDirection.OUTPUT:
                parameter.value = result.outputs.get(parameter.name)
        for message in self.connection.info_messages:
            self.connection.emit_info(message)
        return result

    def execute_non_query(self) -> int:
        return self._run().rowcount

    def execute_scalar(self) -> Any:
        result = self._run()
        return result.rows[0][0] if result.rows else None

    def execute_reader(self, behavior: CommandBehavior = CommandBehavior.DEFAULT) -> FakeReader:
        reader = FakeReader(self._run(), behavior)
        self.connection.readers.append(reader)
        return reader


class FakeConnection:
    """Scripted client: results are looked up by command text."""

    dialect = "mssql"
    error_types: tuple[type[BaseException], ...] = (FakeDatabaseError,)

    def __init__(self) -> None:
        self._state = ConnectionState.CLOSED
        self.database = "main"
        self.results: dict[str, FakeResult] = {}
        self.executed: list[tuple[str, CommandType, dict[str, Any]]] = []
        self.readers: list[FakeReader] = []
        self.info_messages: list[str] = []
        self.open_error: BaseException | None = None
        self.open_calls = 0
        self.close_calls = 0
        self.state_listeners: list[Callable[[StateChangeEvent], Any]] = []
        self.info_listeners: list[Callable[[InfoMessageEvent], Any]] = []

    @property
    def state(self) -> ConnectionState:
        return self._state

    def _transition(self, state: ConnectionState) -> None:
        original, self._state = self._state, state
        for listener in self.state_listeners:
            listener(StateChangeEvent(original, state))

    def open(self) -> None:
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error
        self._transition(ConnectionState.OPEN)

    def close(self) -> None:
        self.close_calls += 1
        self._transition(ConnectionState.CLOSED)

    def change_database(self, name: str) -> None:
        self.database = name

    def add_state_change_listener(self, listener: Callable[[StateChangeEvent], Any]) -> None:
        self.state_listeners.append(listener)

    def add_info_message_listener(self, listener: Callable[[InfoMessageEvent], Any]) -> None:
        self.info_listeners.append(listener)

    def emit_info(self, message: str) -> None:
        for listener in self.info_listeners:
            listener(InfoMessageEvent(message, source="fake"))

    def create_command(self, text: str, command_type: CommandType = CommandType.TEXT) -> FakeCommand:
        return FakeCommand(self, text, command_type)


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def executor(fake_connection: FakeConnection) -> FluidSQL:
    return FluidSQL(fake_connection)


@pytest.fixture
def fake_result() -> type[FakeResult]:
    return FakeResult


@pytest.fixture
def fake_error() -> type[FakeDatabaseError]:
    return FakeDatabaseError


@pytest.fixture
def sqlite_database(tmp_path: Path) -> str:
    return str(tmp_path / "fluidsql.db")


@pytest.fixture
def sqlite_executor(sqlite_database: str) -> Generator[FluidSQL, None, None]:
    with FluidSQL(SqliteConnection(sqlite_database)) as fs:
        fs.create_text_command(
            "create table people (id integer primary key autoincrement, first_name text, last_name text, "
            "age integer, photo blob)"
        ).execute_non_query()
        yield fs
