"""
Unified error handling for subjectlens CLI commands.

The identity and discovery modules never raise for absent data; errors
come from the layers around them (catalogue loading, case files, CLI).

Exit Codes:
- 0: Success
- 1: Warning (nothing to report, e.g. no suggestions)
- 10: Configuration error
- 12: Validation error (malformed catalogue or case file)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    WARNING = 1
    CONFIG_ERROR = 10
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127


class SubjectLensError(Exception):
    """Base exception for subjectlens errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SubjectLensError):
    """Raised for configuration-related errors."""

    exit_code = ExitCode.CONFIG_ERROR


class ValidationError(SubjectLensError):
    """Raised when caller-supplied data fails validation."""

    exit_code = ExitCode.VALIDATION_ERROR


class CatalogError(ValidationError):
    """Raised when a discovery rule/system catalogue cannot be loaded."""


F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(*, log_errors: bool = True) -> Callable[[F], F]:
    """
    Decorator for CLI commands that converts exceptions to exit codes.

    SubjectLensError subclasses exit with their own exit_code; anything else
    exits with UNKNOWN_ERROR. Either way the user sees a one-line message
    on the console.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            from subjectlens.cli.ux import error as print_error

            try:
                return func(*args, **kwargs)
            except SubjectLensError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=int(e.exit_code),
                        **e.details,
                    )
                print_error(format_error_message(e))
                return e.exit_code
            except Exception as e:
                if log_errors:
                    logger.exception(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        exit_code=int(ExitCode.UNKNOWN_ERROR),
                    )
                print_error(f"Unexpected error: {type(e).__name__}: {e}")
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: SubjectLensError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
