"""Core primitives: errors, logging, settings and hashing."""

from integration_operator.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    OperatorError,
    PipelineError,
    TransientError,
    categorize_error,
    is_retryable,
)
from integration_operator.core.hashing import compute_digest
from integration_operator.core.logging import LogContext, configure_logging, get_logger
from integration_operator.core.settings import OperatorSettings, get_settings

__all__ = [
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "OperatorError",
    "PipelineError",
    "TransientError",
    "categorize_error",
    "is_retryable",
    "compute_digest",
    "LogContext",
    "configure_logging",
    "get_logger",
    "OperatorSettings",
    "get_settings",
]
