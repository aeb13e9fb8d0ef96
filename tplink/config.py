"""Configuration management for the router admin CLI."""

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from dotenv import load_dotenv


class RouterConfig(BaseModel):
    """Router address and admin credentials."""
    model_config = ConfigDict(validate_assignment=True)

    url: str = "http://192.168.168.1"
    username: str = "admin"
    password: str = "admin"

    @field_validator("password", mode="before")
    @classmethod
    def expand_env_var(cls, v: str) -> str:
        """Expand environment variables in password.

        load_config() leaves an unset ${VAR} as literal text; here it becomes an
        empty password, which ClientConfig rejects as InvalidCredentials.
        """
        if v and isinstance(v, str) and v.startswith("${") and v.endswith("}"):
            env_var = v[2:-1]
            return os.getenv(env_var, "")
        return v


class HTTPConfig(BaseModel):
    """HTTP transport settings."""
    model_config = ConfigDict(validate_assignment=True)

    timeout: int = Field(default=30, ge=1, le=300)  # seconds, whole request
    verify_ssl: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None


class Config(BaseModel):
    """Main configuration class."""
    router: RouterConfig = Field(default_factory=RouterConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def expand_env_vars(obj):
    """Recursively expand environment variables in a dict."""
    if isinstance(obj, dict):
        return {k: expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        pattern = re.compile(r'\$\{([^}]+)\}')
        def replacer(match):
            return os.getenv(match.group(1), match.group(0))
        return pattern.sub(replacer, obj)
    return obj


def load_config(config_path: str = "tplink.yaml", env_file: str = ".env") -> Config:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.
        env_file: Path to the .env file for environment variables.

    Returns:
        Config object with all settings.
    """
    env_path = Path(env_file)
    if env_path.exists():
        load_dotenv(env_path)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "r") as f:
        raw_config = yaml.safe_load(f) or {}

    return Config(**expand_env_vars(raw_config))
