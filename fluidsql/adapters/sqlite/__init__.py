from fluidsql.adapters.sqlite.config import SqliteConfig, SqliteConnectionParams
from fluidsql.adapters.sqlite.driver import SqliteCommand, SqliteConnection, SqliteReader

__all__ = ("SqliteCommand", "SqliteConfig", "SqliteConnection", "SqliteConnectionParams", "SqliteReader")
