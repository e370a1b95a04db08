"""
Configuration management with Pydantic Settings
Supports environment variables and YAML configuration files
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class MapperConfig(BaseModel):
    """JSON reader/writer configuration"""

    coerce_numbers: bool = Field(
        default=False, description="Accept JSON integers where a float is declared"
    )
    builtin_matchers: bool = Field(
        default=True, description="Register list/mapping/record/model matchers"
    )


class ORMConfig(BaseModel):
    """Mini ORM configuration"""

    database_url: str = Field(
        default="sqlite://", description="SQLAlchemy database URL"
    )
    echo: bool = Field(default=False, description="Echo emitted SQL")


class LoggingConfig(BaseModel):
    """Logging configuration"""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Stdlib log format",
    )
    json_logs: bool = Field(default=False, description="Render structlog events as JSON")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Main application settings with environment variable support
    """

    env: Literal["dev", "test", "prod"] = Field(
        default="dev", description="Environment: dev/test/prod"
    )
    debug: bool = Field(default=False, description="Debug mode")

    mapper: MapperConfig = Field(default_factory=MapperConfig)
    orm: ORMConfig = Field(default_factory=ORMConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="BEANFRAME_",
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


def load_yaml_config(env: str = "dev") -> dict[str, Any]:
    """
    Load YAML configuration file based on environment
    """
    config_file = Path(f"config.{env}.yaml")
    if not config_file.exists():
        return {}

    with open(config_file, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{config_file} must contain a mapping, got {type(data).__name__}")
    return data


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance
    Values from config.{env}.yaml take precedence over environment variables
    """
    env = os.getenv("BEANFRAME_ENV", "dev")
    yaml_config = load_yaml_config(env)
    if yaml_config:
        logger.debug(f"Loaded config.{env}.yaml")
    return Settings(**yaml_config)
