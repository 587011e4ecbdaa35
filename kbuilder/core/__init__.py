"""
Builder - Core Package

This package provides the shared infrastructure for both pipelines:
- Build log and logging utilities
- Command runner
- Filesystem staging operations
- Custom exceptions
"""

from kbuilder.core.logger import BuildLog, LoggerMixin, PipelineLogger, get_logger
from kbuilder.core.runner import CommandRunner, format_command
from kbuilder.core.exceptions import (
    BuilderException,
    ConfigurationError,
    CommandError,
    StagingError,
    PreflightError,
)

__all__ = [
    # Logging
    "BuildLog",
    "LoggerMixin",
    "PipelineLogger",
    "get_logger",
    # Commands
    "CommandRunner",
    "format_command",
    # Exceptions
    "BuilderException",
    "ConfigurationError",
    "CommandError",
    "StagingError",
    "PreflightError",
]
