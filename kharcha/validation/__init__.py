"""Validation package."""

from kharcha.validation.validator import (
    CommandValidator,
    InvalidCommandError,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "CommandValidator",
    "InvalidCommandError",
    "ValidationIssue",
    "ValidationResult",
]
