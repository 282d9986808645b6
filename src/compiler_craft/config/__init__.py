"""Configuration loading and validation."""

from .loader import load_config
from .schema import (
    AnthropicConfig,
    CraftConfig,
    FileLoggingConfig,
    LLMConfig,
    LoggingConfig,
    ReportConfig,
    ServerConfig,
)

__all__ = [
    # Loader
    "load_config",
    # Root config
    "CraftConfig",
    # Top-level configs
    "LLMConfig",
    "ServerConfig",
    "ReportConfig",
    "LoggingConfig",
    "FileLoggingConfig",
    # Provider-specific configs
    "AnthropicConfig",
]
