"""Core modules for subjectlens - centralized definitions and utilities."""

from subjectlens.core.errors import (
    CatalogError,
    ConfigurationError,
    ExitCode,
    SubjectLensError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "SubjectLensError",
    "ConfigurationError",
    "ValidationError",
    "CatalogError",
    "format_error_message",
    "main_with_error_handling",
]
