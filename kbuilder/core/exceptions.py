"""
Custom Exceptions for the Builder

Provides a small hierarchy of exceptions raised inside pipeline steps.
The sequencer collapses all of them into a step failure; the step's
severity decides whether the pipeline stops.
"""

from typing import Any, Dict, List, Optional, Sequence


class BuilderException(Exception):
    """
    Base exception for all builder and installer errors.

    All custom exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize the exception.

        Args:
            message: Error message
            details: Additional error details
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        result = self.message
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {self.cause}"
        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None
        }


class ConfigurationError(BuilderException):
    """
    Raised when there's a configuration error.

    Examples:
    - Invalid kernel version or job count
    - Unreadable or malformed YAML override file
    """
    pass


class CommandError(BuilderException):
    """
    Raised when an external command exits with a non-zero status.

    A missing executable, a network failure during a download and a
    genuine build failure all surface the same way.
    """

    def __init__(
        self,
        message: str,
        argv: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.argv: List[str] = list(argv or [])
        self.returncode = returncode

    def __str__(self) -> str:
        result = super().__str__()
        if self.returncode is not None:
            result += f" | Exit code: {self.returncode}"
        return result


class StagingError(BuilderException):
    """
    Raised when a filesystem staging operation fails.

    Examples:
    - Directory cannot be created (permission denied)
    - Destination file cannot be opened for writing
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.path = path

    def __str__(self) -> str:
        result = super().__str__()
        if self.path:
            result += f" | Path: {self.path}"
        return result


class PreflightError(BuilderException):
    """Raised when the host fails a hard requirement (OS family, privileges)."""
    pass
