"""Command kinds, parameter records and dialect constants shared by the engine and adapters."""

from enum import Enum
from typing import Any, Final, Optional

from fluidsql.exceptions import ImproperConfigurationError

__all__ = (
    "DEFAULT_BINARY_BUFFER_SIZE",
    "IDENTITY_QUERIES",
    "RETURN_VALUE_PARAMETER_NAME",
    "CommandBehavior",
    "CommandType",
    "ConnectionState",
    "DbParameter",
    "ParameterDirection",
    "identity_query_for",
)

DEFAULT_BINARY_BUFFER_SIZE: Final[int] = 1 << 18
RETURN_VALUE_PARAMETER_NAME: Final[str] = "RETURN_VALUE"

IDENTITY_QUERIES: Final[dict[str, str]] = {
    "mssql": "select scope_identity()",
    "sqlite": "select last_insert_rowid()",
    "postgres": "select lastval()",
    "mysql": "select last_insert_id()",
}


class CommandType(str, Enum):
    """How the command text is interpreted."""

    TEXT = "text"
    STORED_PROCEDURE = "stored_procedure"
    TABLE_DIRECT = "table_direct"


class CommandBehavior(str, Enum):
    """Hints passed to a reader when it is opened."""

    DEFAULT = "default"
    SEQUENTIAL_ACCESS = "sequential_access"
    SINGLE_ROW = "single_row"


class ConnectionState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class ParameterDirection(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    INPUT_OUTPUT = "input_output"
    RETURN_VALUE = "return_value"


class DbParameter:
    """A parameter bound into a command.

    Output and return value parameters are populated in place by the client
    once the command has run.
    """

    __slots__ = ("db_type", "direction", "name", "size", "value")

    def __init__(
        self,
        name: str,
        value: Any = None,
        direction: ParameterDirection = ParameterDirection.INPUT,
        db_type: "Optional[str]" = None,
        size: int = -1,
    ) -> None:
        self.name = name
        self.value = value
        self.direction = direction
        self.db_type = db_type
        self.size = size

    @property
    def is_input(self) -> bool:
        return self.direction in {ParameterDirection.INPUT, ParameterDirection.INPUT_OUTPUT}

    def __repr__(self) -> str:
        return f"DbParameter(name={self.name!r}, value={self.value!r}, direction={self.direction.value})"


def identity_query_for(dialect: str) -> str:
    """Return the query that fetches the last generated identity for ``dialect``.

    Args:
        dialect: Dialect name reported by the connection.

    Raises:
        ImproperConfigurationError: The dialect has no known identity query.

    Returns:
        The identity query text.
    """
    try:
        return IDENTITY_QUERIES[dialect]
    except KeyError:
        msg = f"No identity query is known for dialect {dialect!r}"
        raise ImproperConfigurationError(msg) from None
