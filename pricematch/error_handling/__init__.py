"""
Error handling module for the pricing match engine.

Provides the exception taxonomy, non-fatal warnings, and per-item isolation.
"""

from .error_handler import ErrorHandler, RunReport
from .exceptions import (
    EmptyInputError,
    InvalidTransitionError,
    MissingRequiredFieldError,
    PriceMatchError,
    ProcessingWarning,
    RowParseWarning,
)

__all__ = [
    'ErrorHandler',
    'RunReport',
    'EmptyInputError',
    'InvalidTransitionError',
    'MissingRequiredFieldError',
    'PriceMatchError',
    'ProcessingWarning',
    'RowParseWarning',
]
