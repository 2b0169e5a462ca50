import sqlite3

import pytest

from fluidsql.exceptions import (
    CommandNotCreatedError,
    DatabaseExecutionError,
    DuplicateKeyError,
    DuplicateParameterError,
    FluidSQLError,
    ImproperConfigurationError,
    MissingDependencyError,
    MissingOutputParameterError,
    NoReturnValueError,
)


@pytest.mark.parametrize(
    "exception_class",
    [
        CommandNotCreatedError,
        DatabaseExecutionError,
        DuplicateKeyError,
        DuplicateParameterError,
        ImproperConfigurationError,
        MissingDependencyError,
        MissingOutputParameterError,
        NoReturnValueError,
    ],
)
def test_exception_hierarchy(exception_class: type) -> None:
    assert issubclass(exception_class, FluidSQLError)


def test_missing_dependency_is_import_error() -> None:
    exc = MissingDependencyError("msgspec")
    assert isinstance(exc, ImportError)
    assert "pip install fluidsql[msgspec]" in str(exc)


def test_base_error_detail() -> None:
    assert str(FluidSQLError("Something broke")) == "Something broke"
    assert repr(FluidSQLError(detail="boom")) == "FluidSQLError - boom"
    assert repr(FluidSQLError()) == "FluidSQLError"


def test_duplicate_parameter_error_carries_name() -> None:
    exc = DuplicateParameterError("first_name")
    assert exc.name == "first_name"
    assert "'first_name'" in str(exc)


def test_missing_output_parameter_error_carries_name() -> None:
    exc = MissingOutputParameterError("total")
    assert exc.name == "total"
    assert "total" in str(exc)


def test_no_return_value_default_message() -> None:
    assert str(NoReturnValueError()) == "No return value parameter has been initialized"
    assert str(NoReturnValueError("not yet")) == "not yet"


def test_duplicate_key_error_carries_key() -> None:
    exc = DuplicateKeyError(3)
    assert exc.key == 3
    assert "3" in str(exc)


def test_database_execution_error_message() -> None:
    original = sqlite3.OperationalError("no such table: nope")

    exc = DatabaseExecutionError(original, "select * from nope")

    assert exc.error is original
    assert exc.command == "select * from nope"
    assert exc.stage == "execute"
    assert str(exc) == "Error executing select * from nope: no such table: nope"


def test_database_execution_error_open_stage() -> None:
    exc = DatabaseExecutionError(sqlite3.OperationalError("unable to open database file"), stage="open")
    assert str(exc) == "Error opening connection: unable to open database file"


def test_database_execution_error_chaining() -> None:
    with pytest.raises(DatabaseExecutionError) as exc_info:
        try:
            raise sqlite3.IntegrityError("UNIQUE constraint failed")
        except sqlite3.Error as e:
            raise DatabaseExecutionError(e, "insert into t (a) values (@a)") from e

    assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)
