"""Utility functions and helpers.

- errors: Exception hierarchy and timeout wrapper
- logging: Structured logging with secret sanitization
- security: Secret redaction
- uploads: Decoding uploaded source files
"""

from compiler_craft.utils.errors import (
    AnalysisValidationError,
    CraftError,
    InputError,
    LLMError,
    RateLimitError,
    ReportError,
    SessionBusyError,
    TimeoutError,
    with_timeout,
)
from compiler_craft.utils.logging import (
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from compiler_craft.utils.security import RedactionError, SecretRedactor
from compiler_craft.utils.uploads import decode_source_file

__all__ = [
    # Errors
    "AnalysisValidationError",
    "CraftError",
    "InputError",
    "LLMError",
    # Logging
    "LogFormat",
    "LogLevel",
    "RateLimitError",
    # Security
    "RedactionError",
    "ReportError",
    "SecretRedactor",
    "SessionBusyError",
    "TimeoutError",
    "bind_context",
    "clear_context",
    "configure_logging",
    "decode_source_file",
    "get_logger",
    "with_timeout",
]
