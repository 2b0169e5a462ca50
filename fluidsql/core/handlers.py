"""Handler registry, event payloads and built-in handler helpers.

Handlers are plain callables receiving ``(executor, payload)``. Each registry
is append-only and invoked in registration order.
"""

from typing import TYPE_CHECKING, Any, Callable, Final, Optional

from fluidsql.utils.text import camelize, pascalize

if TYPE_CHECKING:
    from fluidsql.core.command import ConnectionState
    from fluidsql.driver import FluidSQL
    from fluidsql.protocols import CommandProtocol

__all__ = (
    "CommandExecutedEvent",
    "ErrorHandler",
    "FieldNameConverters",
    "HandlerRegistry",
    "InfoMessageEvent",
    "StateChangeEvent",
    "SuppressedExecutionFault",
    "format_command_error",
)

ErrorHandler = Callable[["FluidSQL", BaseException], Any]
InfoHandler = Callable[["FluidSQL", "InfoMessageEvent"], Any]
StateChangeHandler = Callable[["FluidSQL", "StateChangeEvent"], Any]
ExecutedHandler = Callable[["FluidSQL", "CommandExecutedEvent"], Any]


class InfoMessageEvent:
    """An informational message raised by the server (prints, warnings, low severity errors)."""

    __slots__ = ("message", "source")

    def __init__(self, message: str, source: "Optional[str]" = None) -> None:
        self.message = message
        self.source = source

    def __repr__(self) -> str:
        return f"InfoMessageEvent(message={self.message!r}, source={self.source!r})"


class StateChangeEvent:
    __slots__ = ("current_state", "original_state")

    def __init__(self, original_state: "ConnectionState", current_state: "ConnectionState") -> None:
        self.original_state = original_state
        self.current_state = current_state

    def __repr__(self) -> str:
        return f"StateChangeEvent({self.original_state.value} -> {self.current_state.value})"


class CommandExecutedEvent:
    """Raised after every execution with the elapsed time in seconds and the command that ran."""

    __slots__ = ("command", "elapsed")

    def __init__(self, elapsed: float, command: "CommandProtocol") -> None:
        self.elapsed = elapsed
        self.command = command

    def __repr__(self) -> str:
        return f"CommandExecutedEvent(elapsed={self.elapsed:.6f}, command={self.command.command_text!r})"


class SuppressedExecutionFault:
    """Record of a database fault swallowed because error handlers were registered."""

    __slots__ = ("command", "error", "stage")

    def __init__(self, error: BaseException, stage: str, command: "Optional[str]" = None) -> None:
        self.error = error
        self.stage = stage
        self.command = command

    def __repr__(self) -> str:
        return f"SuppressedExecutionFault(stage={self.stage!r}, error={self.error!r})"


class HandlerRegistry:
    """Three independent, append-only lists of side-effect callbacks plus the executed listeners."""

    __slots__ = ("error_handlers", "executed_handlers", "info_handlers", "state_change_handlers")

    def __init__(self) -> None:
        self.error_handlers: list[ErrorHandler] = []
        self.info_handlers: list[InfoHandler] = []
        self.state_change_handlers: list[StateChangeHandler] = []
        self.executed_handlers: list[ExecutedHandler] = []

    @property
    def suppresses_errors(self) -> bool:
        return bool(self.error_handlers)

    def dispatch_error(self, executor: "FluidSQL", error: BaseException) -> None:
        for handler in list(self.error_handlers):
            handler(executor, error)

    def dispatch_executed(self, executor: "FluidSQL", event: CommandExecutedEvent) -> None:
        for handler in list(self.executed_handlers):
            handler(executor, event)


def format_command_error(executor: "FluidSQL", error: BaseException) -> str:
    """Render a fault with the pending command, for use inside error handlers."""
    return f"Error executing {executor.describe_command()}: {error}"


class FieldNameConverters:
    """Ready-made converters for :meth:`FluidSQL.execute_dictionaries`."""

    TITLE_CASE: Final = staticmethod(pascalize)
    CAMEL_CASE: Final = staticmethod(camelize)
