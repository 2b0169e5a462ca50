"""Runtime-checkable protocols describing the underlying database client.

The executor only talks to the client through these. An adapter supplies a
connection, the connection creates commands, and commands open readers.
"""

from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from fluidsql.core.command import CommandBehavior, CommandType, ConnectionState, DbParameter
    from fluidsql.core.handlers import InfoMessageEvent, StateChangeEvent

__all__ = (
    "CommandProtocol",
    "ConnectionProtocol",
    "ReaderProtocol",
    "WritableStream",
)


@runtime_checkable
class ReaderProtocol(Protocol):
    """Forward-only row cursor."""

    @property
    def field_count(self) -> int: ...

    def read(self) -> bool:
        """Advance to the next row, False once the rows are exhausted."""
        ...

    def get_name(self, ordinal: int) -> str: ...

    def get_ordinal(self, name: str) -> int: ...

    def get_value(self, ordinal: int) -> Any: ...

    def get_bytes(self, ordinal: int, offset: int, buffer: "bytearray") -> int:
        """Copy bytes of a column, starting at ``offset``, into ``buffer``.

        Returns:
            The number of bytes copied, 0 once the column is exhausted.
        """
        ...

    def close(self) -> None: ...

    def __enter__(self) -> "ReaderProtocol": ...

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None: ...


@runtime_checkable
class CommandProtocol(Protocol):
    command_text: str
    command_type: "CommandType"
    parameters: "list[DbParameter]"

    def execute_non_query(self) -> int: ...

    def execute_scalar(self) -> Any: ...

    def execute_reader(self, behavior: "CommandBehavior") -> ReaderProtocol: ...


@runtime_checkable
class ConnectionProtocol(Protocol):
    """A single database connection owned by one executor."""

    dialect: str
    error_types: "tuple[type[BaseException], ...]"

    @property
    def state(self) -> "ConnectionState": ...

    @property
    def database(self) -> "Optional[str]": ...

    def open(self) -> None: ...

    def close(self) -> None: ...

    def change_database(self, name: str) -> None: ...

    def add_state_change_listener(self, listener: "Callable[[StateChangeEvent], Any]") -> None: ...

    def add_info_message_listener(self, listener: "Callable[[InfoMessageEvent], Any]") -> None: ...

    def create_command(self, text: str, command_type: "CommandType") -> CommandProtocol: ...


@runtime_checkable
class WritableStream(Protocol):
    """Sink for :meth:`FluidSQL.execute_binary_stream`.

    ``write`` receives an independent ``bytes`` chunk of at most the buffer size.
    """

    def write(self, data: bytes, /) -> Any: ...
