from typing import Any, Optional

__all__ = (
    "CommandNotCreatedError",
    "DatabaseExecutionError",
    "DuplicateKeyError",
    "DuplicateParameterError",
    "FluidSQLError",
    "ImproperConfigurationError",
    "MissingDependencyError",
    "MissingOutputParameterError",
    "NoReturnValueError",
)


class FluidSQLError(Exception):
    """Base exception class from which all FluidSQL exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``FluidSQLError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(FluidSQLError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install fluidsql[{install_package or package}]' to install fluidsql with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(FluidSQLError):
    """Improper Configuration error.

    Raised when the executor or an adapter is asked to do something its configuration cannot support.
    """


# -- Parameter Errors --
class DuplicateParameterError(FluidSQLError):
    """Raised when a parameter name is already present in the parameter store."""

    name: str

    def __init__(self, name: str) -> None:
        super().__init__(detail=f"Parameter {name!r} has already been added")
        self.name = name


class MissingOutputParameterError(FluidSQLError):
    """Raised when reading an output parameter that was never declared."""

    name: str

    def __init__(self, name: str) -> None:
        super().__init__(detail=f"No output parameter named {name!r} has been declared")
        self.name = name


class NoReturnValueError(FluidSQLError):
    """Raised when reading a return value that does not exist or has not been populated yet."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "No return value parameter has been initialized"
        super().__init__(message)


# -- Execution Errors --
class CommandNotCreatedError(FluidSQLError):
    """Raised when executing before any command has been created."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "No command has been created. Call one of the create_*_command methods first."
        super().__init__(message)


class DatabaseExecutionError(FluidSQLError):
    """A database fault with no registered error handler.

    Carries the description of the pending command and the original fault, which
    is also chained as ``__cause__``.
    """

    command: Optional[str]
    error: BaseException
    stage: str

    def __init__(self, error: BaseException, command: Optional[str] = None, stage: str = "execute") -> None:
        detail_message = f"Error executing {command}: {error}" if command else f"Database error: {error}"
        if stage == "open":
            detail_message = f"Error opening connection: {error}"
        super().__init__(detail=detail_message)
        self.command = command
        self.error = error
        self.stage = stage


# -- Materialization Errors --
class DuplicateKeyError(FluidSQLError):
    """Raised when a vertical dictionary encounters the same key twice."""

    key: Any

    def __init__(self, key: Any) -> None:
        super().__init__(detail=f"An item with the key {key!r} has already been added")
        self.key = key
