"""
Configuration module for Discard Toolkit.

Provides the process-wide defaults that discardable models fall back to when
they do not declare their own settings.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union, get_args, get_origin

import yaml
from pydantic import BaseModel, Field, field_validator

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class DiscardConfig(BaseModel):
    """Global configuration for discard behaviour.

    Models snapshot these values when their class is defined, so changes only
    affect models defined afterwards. Configure the toolkit once, at
    application start-up, before importing your models.

    Configuration Sources (in order of precedence):
        1. Programmatic settings (highest priority)
        2. Environment variables (DISCARD_ prefix)
        3. Configuration files (discard.yaml, discard.json)
        4. Default values (lowest priority)

    Example:
        >>> config = DiscardConfig(discard_column="deleted_at")
        >>> set_config(config)

        Loading from environment:

        >>> import os
        >>> os.environ['DISCARD_DISCARD_COLUMN'] = 'deleted_at'
        >>> config = DiscardConfig.from_env()

        Loading from file:

        >>> config = DiscardConfig.from_file('discard.yaml')
    """

    discard_column: str = Field(
        "discarded_at", description="Default name of the discard marker column"
    )
    lock_neutral_value: int = Field(
        0, description="Value of the uniqueness-lock column while a record is kept"
    )
    log_level: str = Field(
        "WARNING", description="Log level for the discard_toolkit logger"
    )

    @field_validator("discard_column")
    @classmethod
    def validate_discard_column(cls, v: str) -> str:
        """Ensure the column name can be used as a mapped attribute."""
        v = v.strip()
        if not v.isidentifier():
            raise ValueError(f"Discard column must be a valid identifier, got {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is one the logging module knows."""
        if v.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Log level must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )
        return v.upper()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()

    @classmethod
    def from_env(cls, prefix: str = "DISCARD_") -> "DiscardConfig":
        """
        Load configuration from environment variables.

        Args:
            prefix: Prefix for environment variables

        Returns:
            Configuration instance
        """
        config_dict: Dict[str, Any] = {}

        for field_name, field_info in cls.model_fields.items():
            env_var = f"{prefix}{field_name.upper()}"
            if env_var not in os.environ:
                continue

            value = os.environ[env_var]
            field_type = field_info.annotation

            # Handle Optional types
            if get_origin(field_type) is Union:
                args = get_args(field_type)
                field_type = next((arg for arg in args if arg is not type(None)), str)

            try:
                if field_type == int:
                    config_dict[field_name] = int(value)
                else:
                    config_dict[field_name] = value
            except (ValueError, TypeError):
                # Let validation report the bad value
                config_dict[field_name] = value

        return cls.model_validate(config_dict)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "DiscardConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to a .yaml, .yml or .json file

        Returns:
            Configuration instance
        """
        path = Path(path)
        text = path.read_text(encoding="utf-8")

        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)

        return cls.model_validate(data or {})


# Global configuration instance
_config: Optional[DiscardConfig] = None


def get_config() -> DiscardConfig:
    """
    Get the global configuration instance.

    Returns:
        Global configuration
    """
    global _config

    if _config is None:
        _config = DiscardConfig.from_env()

    return _config


def set_config(config: DiscardConfig) -> None:
    """
    Set the global configuration instance.

    Args:
        config: Configuration to set
    """
    global _config
    _config = config
    configure_logging(config)


def reset_config() -> None:
    """Drop the global configuration and the package logger level it set."""
    global _config
    _config = None
    logging.getLogger("discard_toolkit").setLevel(logging.NOTSET)


def configure(**kwargs: Any) -> DiscardConfig:
    """
    Configure the toolkit with keyword arguments.

    Args:
        **kwargs: Configuration parameters

    Returns:
        Updated configuration
    """
    config_dict = get_config().to_dict()
    config_dict.update(kwargs)
    set_config(DiscardConfig(**config_dict))

    return get_config()


def configure_logging(config: Optional[DiscardConfig] = None) -> None:
    """Apply the configured log level to the package logger."""
    config = config or get_config()
    logging.getLogger("discard_toolkit").setLevel(config.log_level)
