"""
Logging Utilities

Provides the build log (an append-only file plus console output) that
lives for the duration of a builder or installer run. Command output is
mirrored into the file and only shown on the console when requested.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union


ROOT_LOGGER_NAME = "kbuilder"

SUCCESS = 25
OUTPUT = 15

logging.addLevelName(SUCCESS, "SUCCESS")
logging.addLevelName(OUTPUT, "OUTPUT")

FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
CONSOLE_FORMAT = "[%(asctime)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Global logger registry
_loggers: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger under the kbuilder hierarchy.

    Args:
        name: Logger name (typically module or class name)

    Returns:
        Logger instance
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    return _loggers[name]


def log_success(logger: logging.Logger, message: str, *args: Any) -> None:
    """Log a message at the SUCCESS level."""
    logger.log(SUCCESS, message, *args)


class _ConsoleFilter(logging.Filter):
    """Keeps file-only records (raw command output) off the console."""

    def filter(self, record: logging.LogRecord) -> bool:
        return not getattr(record, "file_only", False)


class BuildLog:
    """
    Process-wide build log with an explicit lifecycle.

    Opening attaches a file handler and a console handler to the
    ``kbuilder`` logger; closing flushes and detaches both. Use it as a
    context manager so the file is closed on success and failure alike.

    Usage:
        with BuildLog("/tmp/kernel_build.log", verbose=True) as log:
            runner = CommandRunner(log)
            ...
    """

    def __init__(
        self,
        path: Union[str, Path],
        verbose: bool = False,
        stream: Optional[TextIO] = None,
    ):
        """
        Initialize the build log.

        Args:
            path: Log file path (opened in append mode)
            verbose: Show DEBUG records on the console
            stream: Console stream (defaults to stdout)
        """
        self.path = Path(path)
        self.verbose = verbose
        self._stream = stream
        self._logger = logging.getLogger(ROOT_LOGGER_NAME)
        self._output_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.output")
        self._file_handler: Optional[logging.FileHandler] = None
        self._console_handler: Optional[logging.StreamHandler] = None
        self._saved_level = self._logger.level

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    @property
    def is_open(self) -> bool:
        return self._console_handler is not None

    @property
    def has_file(self) -> bool:
        """True when the log file was opened successfully."""
        return self._file_handler is not None

    def open(self) -> "BuildLog":
        """Attach handlers. A log file that cannot be opened is a warning."""
        if self.is_open:
            return self

        self._saved_level = self._logger.level
        self._logger.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(self.stream)
        console_handler.setLevel(logging.DEBUG if self.verbose else logging.INFO)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        console_handler.addFilter(_ConsoleFilter())
        self._logger.addHandler(console_handler)
        self._console_handler = console_handler

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
        except OSError as exc:
            self._logger.warning("Could not open log file %s: %s", self.path, exc)
        else:
            file_handler.setLevel(OUTPUT)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            self._logger.addHandler(file_handler)
            self._file_handler = file_handler

        return self

    def close(self) -> None:
        """Flush and detach both handlers."""
        for handler in (self._file_handler, self._console_handler):
            if handler is None:
                continue
            handler.flush()
            self._logger.removeHandler(handler)
            handler.close()
        self._file_handler = None
        self._console_handler = None
        self._logger.setLevel(self._saved_level)

    def __enter__(self) -> "BuildLog":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def command_output(self, line: str, echo: bool = False) -> None:
        """
        Record one line of command output.

        Args:
            line: Raw output line (trailing newline optional)
            echo: Also write the line to the console as-is
        """
        if echo:
            self.stream.write(line if line.endswith("\n") else line + "\n")
            self.stream.flush()
        self._output_logger.log(OUTPUT, line.rstrip("\n"), extra={"file_only": True})

    def echo(self, text: str) -> None:
        """Write text straight to the console (not to the file)."""
        self.stream.write(text + "\n")
        self.stream.flush()


class LoggerMixin:
    """
    Mixin class that provides logging capabilities to any class.

    Usage:
        class MyClass(LoggerMixin):
            def my_method(self):
                self.logger.info("Doing something")
    """

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class."""
        if not hasattr(self, '_logger'):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger


class PipelineLogger:
    """
    Structured logger for pipeline execution.

    Provides methods for logging step lifecycle events
    with consistent formatting.
    """

    def __init__(self, name: str):
        """
        Initialize the pipeline logger.

        Args:
            name: Logger name
        """
        self.logger = get_logger(name)
        self._context: Dict[str, Any] = {}

    def set_context(self, **kwargs) -> None:
        """Set logging context (e.g., pipeline, step)."""
        self._context.update(kwargs)

    def clear_context(self) -> None:
        """Clear logging context."""
        self._context = {}

    def _format_message(self, message: str) -> str:
        """Format message with context."""
        if self._context:
            context_str = " ".join(f"{k}={v}" for k, v in self._context.items())
            return f"[{context_str}] {message}"
        return message

    def info(self, message: str, **kwargs) -> None:
        self.logger.info(self._format_message(message), **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self.logger.debug(self._format_message(message), **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.logger.warning(self._format_message(message), **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.logger.error(self._format_message(message), **kwargs)

    def success(self, message: str, **kwargs) -> None:
        self.logger.log(SUCCESS, self._format_message(message), **kwargs)

    def step_start(self, step_name: str, description: str = "") -> None:
        """Log the start of a pipeline step."""
        suffix = f": {description}" if description else ""
        self.info(f"STEP | {step_name}{suffix}")

    def step_complete(self, step_name: str, duration: Optional[float] = None) -> None:
        """Log the completion of a pipeline step."""
        if duration:
            self.success(f"STEP | {step_name} completed ({duration:.2f}s)")
        else:
            self.success(f"STEP | {step_name} completed")

    def step_warning(self, step_name: str, message: str) -> None:
        """Log a non-fatal step failure."""
        self.warning(f"STEP | {step_name} failed (continuing): {message}")

    def step_failed(self, step_name: str, message: str) -> None:
        """Log a fatal step failure."""
        self.error(f"STEP | {step_name} failed: {message}")
