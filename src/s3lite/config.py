"""Configuration loading and Pydantic models for s3lite."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class ConnectionConfig(BaseModel):
    """Service endpoint and transport configuration."""

    host: str = "s3.amazonaws.com"
    use_ssl: bool = False
    timeout: float | None = None
    debug: bool = False
    vhost: bool = True


class AuthConfig(BaseModel):
    """Credential configuration."""

    access_key_id: str = ""
    secret_access_key: str = ""


class LoggingConfig(BaseModel):
    """Log output configuration."""

    level: str = "INFO"
    format: str = "text"


class MetricsConfig(BaseModel):
    """Prometheus client-side metrics configuration."""

    enabled: bool = False


class ClientConfig(BaseModel):
    """Top-level s3lite configuration."""

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


def _parse_connection(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the connection section from YAML data into a dict for Pydantic."""
    if data is None:
        return {}
    return {
        "host": data.get("host", "s3.amazonaws.com"),
        "use_ssl": data.get("use_ssl", False),
        "timeout": data.get("timeout"),
        "debug": data.get("debug", False),
        "vhost": data.get("vhost", True),
    }


def _parse_auth(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the auth section from YAML data."""
    if data is None:
        return {}
    return {
        "access_key_id": data.get("access_key_id", ""),
        "secret_access_key": data.get("secret_access_key", ""),
    }


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_metrics(data: dict[str, Any] | None) -> dict[str, Any]:
    if data is None:
        return {}
    return {"enabled": data.get("enabled", False)}


def load_config(path: Path) -> ClientConfig:
    """Load a ClientConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated ClientConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return ClientConfig(
        connection=ConnectionConfig(**_parse_connection(raw.get("connection"))),
        auth=AuthConfig(**_parse_auth(raw.get("auth"))),
        logging=LoggingConfig(**_parse_logging(raw.get("logging"))),
        metrics=MetricsConfig(**_parse_metrics(raw.get("metrics"))),
    )
