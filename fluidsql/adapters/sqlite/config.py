"""SQLite connection configuration."""

import sqlite3
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional, TypedDict, cast

from typing_extensions import NotRequired

from fluidsql.adapters.sqlite.driver import SqliteConnection
from fluidsql.config import ExecutorConfig
from fluidsql.driver import FluidSQL
from fluidsql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator

logger = get_logger("adapters.sqlite.config")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


__all__ = ("SqliteConfig", "SqliteConnectionParams")


class SqliteConfig:
    """Creates SQLite connections and executors from one set of parameters.

    ``:memory:`` databases are given a shared-cache URI and kept alive by an
    anchor connection, so executors that auto-close do not lose the data.
    """

    __slots__ = ("_anchor", "connection_config", "executor_config")

    def __init__(
        self,
        *,
        connection_config: "Optional[SqliteConnectionParams | dict[str, Any]]" = None,
        executor_config: "Optional[ExecutorConfig]" = None,
    ) -> None:
        """Initialize SQLite configuration.

        Args:
            connection_config: Parameters passed to ``sqlite3.connect``
            executor_config: Configuration for executors created from this config
        """
        connection_config = dict(connection_config or {})
        if "database" not in connection_config or connection_config["database"] == ":memory:":
            connection_config["database"] = f"file:memory_{uuid.uuid4().hex}?mode=memory&cache=shared"
            connection_config["uri"] = True
        else:
            database_path = str(connection_config["database"])
            if database_path.startswith("file:") and not connection_config.get("uri"):
                logger.debug(
                    "Database URI detected (%s) but uri=True not set. "
                    "Auto-enabling URI mode to prevent physical file creation.",
                    database_path,
                )
                connection_config["uri"] = True

        self.connection_config = cast("SqliteConnectionParams", connection_config)
        self.executor_config = executor_config or ExecutorConfig()
        self._anchor: Optional[sqlite3.Connection] = None

    @property
    def is_memory(self) -> bool:
        return "mode=memory" in str(self.connection_config.get("database", ""))

    def _keep_alive(self) -> None:
        if self.is_memory and self._anchor is None:
            params = {k: v for k, v in self.connection_config.items() if k != "database"}
            self._anchor = sqlite3.connect(self.connection_config["database"], **params)

    def create_connection(self) -> SqliteConnection:
        """Create an unopened connection.

        Returns:
            SqliteConnection: Opened lazily by the executor that owns it
        """
        self._keep_alive()
        params = {k: v for k, v in self.connection_config.items() if k != "database"}
        return SqliteConnection(self.connection_config["database"], **params)

    def create_executor(self, *, auto_close: "Optional[bool]" = None) -> FluidSQL:
        return FluidSQL(self.create_connection(), auto_close=auto_close, config=self.executor_config)

    @contextmanager
    def provide_executor(self, *, auto_close: "Optional[bool]" = None) -> "Generator[FluidSQL, None, None]":
        """Provide an executor whose connection is closed on exit.

        Yields:
            FluidSQL: An executor owning a fresh connection
        """
        with self.create_executor(auto_close=auto_close) as executor:
            yield executor

    def close(self) -> None:
        """Release the in-memory anchor connection, discarding a ``:memory:`` database."""
        if self._anchor is not None:
            self._anchor.close()
            self._anchor = None
