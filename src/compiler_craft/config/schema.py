"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnthropicConfig(BaseModel):
    """Anthropic-specific configuration."""

    api_key: str
    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = Field(8192, ge=256, le=64000)
    # Deterministic output keeps tables and trees parseable
    temperature: float = Field(0.0, ge=0.0, le=1.0)

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Reject empty keys so the server fails at startup, not on first request."""
        if not v.strip():
            raise ValueError("API key must not be empty")
        return v


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: Literal["anthropic"]
    anthropic: AnthropicConfig | None = None
    timeout: float = Field(120.0, ge=1.0, le=600.0, description="Per-request timeout in seconds")


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "127.0.0.1"
    port: int = Field(3001, ge=1, le=65535)
    cors_origins: list[str] = ["*"]


class ReportConfig(BaseModel):
    """Automatic report persistence."""

    enabled: bool = True
    path: Path | None = Field(
        None, description="Report file; defaults to compiler_report.txt above the working directory"
    )


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("logs/compiler-craft.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "console"
    file: FileLoggingConfig = FileLoggingConfig()


class CraftConfig(BaseSettings):
    """Root configuration for Compiler Craft."""

    llm: LLMConfig
    server: ServerConfig = ServerConfig()
    report: ReportConfig = ReportConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
    )
