"""Load CraftConfig from a YAML file, expanding ${VAR} references first."""

import os
import re
from pathlib import Path

import yaml

from .schema import CraftConfig

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(text: str) -> str:
    """
    Expand every ``${NAME}`` in ``text`` from the process environment.

    Raises:
        ValueError: If a referenced variable is not set
    """

    def lookup(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in os.environ:
            raise ValueError(f"Environment variable {name} not found")
        return os.environ[name]

    return ENV_VAR_PATTERN.sub(lookup, text)


def load_config(path: Path) -> CraftConfig:
    """
    Read, expand and validate a configuration file.

    Args:
        path: YAML file to load

    Returns:
        The validated configuration

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: On a missing environment variable, a non-mapping document,
            or a schema violation (pydantic's ValidationError is a ValueError)
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    document = yaml.safe_load(substitute_env_vars(path.read_text())) or {}
    if not isinstance(document, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")

    config = CraftConfig.model_validate(document)
    validate_config(config)
    return config


def validate_config(config: CraftConfig) -> None:
    """
    Check the settings block for the selected LLM provider is present.

    Raises:
        ValueError: If it is missing
    """
    if config.llm.provider == "anthropic" and config.llm.anthropic is None:
        raise ValueError("Anthropic provider selected but anthropic config missing")
