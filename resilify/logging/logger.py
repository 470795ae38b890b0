"""Resilify logger implementation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from rich.console import Console
from rich.markup import escape


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Get numeric rank for comparison."""
        ranks = {"debug": 0, "info": 1, "warning": 2, "error": 3}
        return ranks[self.value]


class ResilifyLogger:
    """Structured logger for resilient calls.

    Provides Rich-formatted logging for attempts, retries and circuit
    breaker transitions.

    Example:
        >>> logger = ResilifyLogger(level=LogLevel.DEBUG)
        >>> logger.info("Processing started", name="fetch_user")
        >>> logger.retry_scheduled("fetch_user", attempt=1, delay_ms=100)
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.INFO,
        console: Console | None = None,
        show_timestamps: bool = True,
        show_level: bool = True,
        enabled: bool = True,
    ) -> None:
        """Initialize logger.

        Args:
            level: Minimum log level to display.
            console: Rich console instance (stderr console if None).
            show_timestamps: Whether to show timestamps.
            show_level: Whether to show log level.
            enabled: Whether logging is enabled.
        """
        self._level = level
        self._console = console or Console(stderr=True)
        self._show_timestamps = show_timestamps
        self._show_level = show_level
        self._enabled = enabled

    @property
    def level(self) -> LogLevel:
        """Current log level."""
        return self._level

    @level.setter
    def level(self, value: LogLevel) -> None:
        self._level = value

    @property
    def enabled(self) -> bool:
        """Whether logging is enabled."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    def _should_log(self, level: LogLevel) -> bool:
        return self._enabled and level.rank >= self._level.rank

    def _format_prefix(self, level: LogLevel) -> str:
        """Format log prefix with timestamp and level."""
        parts = []

        if self._show_timestamps:
            timestamp = datetime.now().strftime("%H:%M:%S")
            parts.append(f"[dim]{timestamp}[/]")

        if self._show_level:
            level_colors = {
                LogLevel.DEBUG: "dim",
                LogLevel.INFO: "blue",
                LogLevel.WARNING: "yellow",
                LogLevel.ERROR: "red bold",
            }
            color = level_colors.get(level, "white")
            parts.append(f"[{color}]{level.value.upper():7}[/]")

        return " ".join(parts)

    def _emit(self, level: LogLevel, line: str) -> None:
        prefix = self._format_prefix(level)
        self._console.print(f"{prefix} {line}" if prefix else line)

    def _log(self, level: LogLevel, message: str, **context: Any) -> None:
        if not self._should_log(level):
            return

        message = escape(message)
        if context:
            context_str = " ".join(
                f"[dim]{k}=[/]{escape(str(v))}" for k, v in context.items()
            )
            message = f"{message} {context_str}"

        self._emit(level, message)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, message, **context)

    # Resilience-specific logging methods

    def attempt_succeeded(self, name: str, attempt: int, time_ms: float) -> None:
        """Log a successful attempt."""
        if not self._should_log(LogLevel.DEBUG):
            return

        self._emit(
            LogLevel.DEBUG,
            f"[green]✓ {escape(name)}[/] attempt {attempt} ({time_ms:.1f}ms)",
        )

    def attempt_failed(
        self,
        name: str,
        attempt: int,
        time_ms: float,
        error: BaseException,
    ) -> None:
        """Log a failed attempt."""
        if not self._should_log(LogLevel.DEBUG):
            return

        self._emit(
            LogLevel.DEBUG,
            f"[red]✗ {escape(name)}[/] attempt {attempt} failed after {time_ms:.1f}ms: "
            f"{escape(type(error).__name__)}: {escape(str(error))}",
        )

    def retry_scheduled(self, name: str, attempt: int, delay_ms: int) -> None:
        """Log a retry about to happen."""
        if not self._should_log(LogLevel.DEBUG):
            return

        self._emit(
            LogLevel.DEBUG,
            f"  [dim]Retry:[/] {escape(name)} attempt {attempt + 1} in {delay_ms}ms",
        )

    def giving_up(self, name: str, attempts: int, error: BaseException) -> None:
        """Log the terminal failure of a call."""
        if not self._should_log(LogLevel.INFO):
            return

        self._emit(
            LogLevel.INFO,
            f"[bold red]✗ {escape(name)}[/] giving up after {attempts} attempt(s): "
            f"{escape(type(error).__name__)}",
        )

    def circuit_opened(self, name: str, failures: int) -> None:
        """Log a circuit transition to OPEN."""
        if not self._should_log(LogLevel.WARNING):
            return

        self._emit(
            LogLevel.WARNING,
            f"[bold yellow]◆ Circuit[/] {escape(name)} opened after {failures} failure(s)",
        )

    def circuit_half_opened(self, name: str) -> None:
        """Log a circuit transition to HALF_OPEN."""
        if not self._should_log(LogLevel.INFO):
            return

        self._emit(
            LogLevel.INFO,
            f"[bold cyan]◆ Circuit[/] {escape(name)} half-open, probing",
        )

    def circuit_closed(self, name: str) -> None:
        """Log a circuit transition to CLOSED."""
        if not self._should_log(LogLevel.INFO):
            return

        self._emit(
            LogLevel.INFO,
            f"[bold green]◆ Circuit[/] {escape(name)} closed",
        )

    def hook_error(self, hook: str, error: BaseException) -> None:
        """Log an exception raised by an observability hook."""
        if not self._should_log(LogLevel.ERROR):
            return

        self._emit(
            LogLevel.ERROR,
            f"Hook [bold]{escape(hook)}[/] raised "
            f"{escape(type(error).__name__)}: {escape(str(error))}",
        )


_logger: ResilifyLogger | None = None


def get_logger() -> ResilifyLogger:
    """Return the process-wide logger, creating a default one on first use."""
    global _logger
    if _logger is None:
        _logger = ResilifyLogger()
    return _logger


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    *,
    console: Console | None = None,
    enabled: bool = True,
    show_timestamps: bool = True,
    show_level: bool = True,
) -> ResilifyLogger:
    """Replace the process-wide logger.

    Example:
        >>> configure_logging(level="debug", show_timestamps=False)
    """
    global _logger
    _logger = ResilifyLogger(
        level=LogLevel(level.lower()) if isinstance(level, str) else level,
        console=console,
        enabled=enabled,
        show_timestamps=show_timestamps,
        show_level=show_level,
    )
    return _logger


def disable_logging() -> None:
    get_logger().enabled = False


def enable_logging() -> None:
    get_logger().enabled = True
